import hashlib
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def sha256_file(path: str | Path) -> str:
    """Return the lower-case hex SHA-256 digest of a file's content.

    The file is read in chunks so large binaries are never fully buffered.
    Read failures are logged and re-raised unchanged.
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as handle:
            for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        logger.error("Failed to calculate SHA256 for %s: %s", path, exc)
        raise
    return digest.hexdigest()
