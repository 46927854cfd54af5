from pydantic import BaseModel, Field


class ManifestFileIn(BaseModel):
    file: str = Field(..., description="Binary name inside the application's files directory")
    target: str
    name: str | None = None
    version: str | None = None
    restart: bool = False


class ManifestBuildRequest(BaseModel):
    version: str = Field(..., min_length=1)
    files: list[ManifestFileIn]
    base_url: str | None = None
    restart_cmd: str | None = None
