class OTAError(Exception):
    """Base class for failures raised by the update-distribution core."""


class InvalidManifestInput(OTAError, ValueError):
    pass


class SourceFileNotFound(OTAError, FileNotFoundError):
    def __init__(self, path: str):
        super().__init__(f"Binary file not found: {path}")
        self.path = path


class DatastoreError(OTAError):
    pass
