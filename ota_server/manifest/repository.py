"""On-disk layout of published applications.

Each application lives under ``<apps_dir>/<app>/`` with its manifest in
``version.yaml`` and its binaries in ``files/``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from ota_server.config import settings
from ota_server.manifest.builder import BuiltManifest

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "version.yaml"
FILES_DIRNAME = "files"

_VERSION_RE = re.compile(r"^version:\s*[\"']?([^\"'\n]+)[\"']?", re.MULTILINE)
_CONFIG_LINE_RE = re.compile(r"^(\w+):\s*[\"']?([^\"']+)[\"']?$")


@dataclass(frozen=True)
class BinaryInfo:
    path: Path
    name: str
    size: int
    mtime: datetime


def apps_root() -> Path:
    return Path(settings.apps_dir)


def ensure_apps_root() -> Path:
    root = apps_root()
    root.mkdir(parents=True, exist_ok=True)
    return root


def app_dir(app_name: str) -> Path:
    return apps_root() / app_name


def manifest_path(app_name: str) -> Path:
    return app_dir(app_name) / MANIFEST_FILENAME


def binary_dir(app_name: str) -> Path:
    return app_dir(app_name) / FILES_DIRNAME


def resolve_binary(app_name: str, file_name: str) -> Path | None:
    """Return the path of a published binary, or None if it is absent.

    Names that escape the application's files directory are treated as absent.
    """
    base = binary_dir(app_name).resolve()
    candidate = (base / file_name).resolve()
    if base not in candidate.parents or not candidate.is_file():
        return None
    return candidate


def read_manifest_text(app_name: str) -> str | None:
    path = manifest_path(app_name)
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


def read_manifest_version(text: str) -> str | None:
    match = _VERSION_RE.search(text)
    if not match:
        return None
    return match.group(1).strip()


def read_app_config(app_name: str) -> dict[str, str] | None:
    """Top-level ``key: value`` pairs of an application's manifest."""
    try:
        text = read_manifest_text(app_name)
    except OSError as exc:
        logger.error("Failed to read config for app %s: %s", app_name, exc)
        return None
    if text is None:
        return None
    config: dict[str, str] = {}
    for line in text.split("\n"):
        match = _CONFIG_LINE_RE.match(line)
        if match:
            config[match.group(1)] = match.group(2)
    return config


def latest_binary(app_name: str) -> BinaryInfo | None:
    directory = binary_dir(app_name)
    if not directory.is_dir():
        return None
    candidates = [
        path
        for path in directory.iterdir()
        if not path.name.startswith(".") and path.is_file()
    ]
    if not candidates:
        return None
    newest = max(candidates, key=lambda path: path.stat().st_mtime)
    stat = newest.stat()
    return BinaryInfo(
        path=newest,
        name=newest.name,
        size=stat.st_size,
        mtime=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
    )


def list_apps() -> list[str]:
    """Applications that have a published manifest, sorted by name."""
    root = apps_root()
    if not root.is_dir():
        return []
    return sorted(
        entry.name
        for entry in root.iterdir()
        if entry.is_dir() and (entry / MANIFEST_FILENAME).is_file()
    )


def write_manifest(app_name: str, built: BuiltManifest) -> Path:
    path = manifest_path(app_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".yaml.tmp")
    tmp_path.write_text(built.text, encoding="utf-8")
    tmp_path.replace(path)
    logger.info("Wrote manifest %s (version %s)", path, built.manifest.version)
    return path
