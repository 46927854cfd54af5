"""Manifest assembly.

A manifest describes every file an agent should fetch for one release of an
application. Building one hashes each source file and derives its download
URL; rendering is delegated to :mod:`ota_server.manifest.renderer`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass

from ota_server.config import settings
from ota_server.errors import InvalidManifestInput, SourceFileNotFound
from ota_server.manifest.hasher import sha256_file
from ota_server.manifest.renderer import render_manifest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManifestFile:
    source_path: str
    target: str
    name: str | None = None
    version: str | None = None
    restart: bool = False


@dataclass(frozen=True)
class ManifestEntry:
    name: str
    url: str
    sha256: str
    target: str
    version: str
    restart: bool = False


@dataclass(frozen=True)
class Manifest:
    version: str
    files: tuple[ManifestEntry, ...]
    restart_cmd: str | None = None


@dataclass(frozen=True)
class ManifestOptions:
    """Overrides for a single build.

    ``base_url`` falls back to ``settings.base_url`` when ``None`` or empty.
    ``restart_cmd`` falls back to ``settings.restart_cmd`` only when ``None``;
    an explicit empty string omits the restart command.
    """

    base_url: str | None = None
    restart_cmd: str | None = None

    def resolved_base_url(self) -> str:
        return (self.base_url or settings.base_url).rstrip("/")

    def resolved_restart_cmd(self) -> str:
        if self.restart_cmd is None:
            return settings.restart_cmd
        return self.restart_cmd


@dataclass(frozen=True)
class BuiltManifest:
    manifest: Manifest
    text: str


def download_url(base_url: str, app_name: str, source_path: str) -> str:
    return f"{base_url.rstrip('/')}/ota/{app_name}/files/{os.path.basename(source_path)}"


def build_manifest(
    files: Sequence[ManifestFile],
    version: str,
    app_name: str,
    options: ManifestOptions | None = None,
) -> BuiltManifest:
    if isinstance(files, (str, bytes)) or not isinstance(files, Sequence):
        raise InvalidManifestInput("Files must be a sequence")
    if len(files) == 0:
        raise InvalidManifestInput("Files array cannot be empty")
    if not app_name:
        raise InvalidManifestInput("App name is required")

    options = options or ManifestOptions()
    base_url = options.resolved_base_url()

    entries = []
    for spec in files:
        if not spec.source_path or not os.path.isfile(spec.source_path):
            raise SourceFileNotFound(spec.source_path or "unknown")
        file_name = os.path.basename(spec.source_path)
        entries.append(
            ManifestEntry(
                name=spec.name or file_name,
                url=download_url(base_url, app_name, spec.source_path),
                sha256=sha256_file(spec.source_path),
                target=spec.target,
                version=spec.version or version,
                restart=bool(spec.restart),
            )
        )

    manifest = Manifest(
        version=version,
        files=tuple(entries),
        restart_cmd=options.resolved_restart_cmd() or None,
    )
    logger.info("Built manifest for %s version %s with %d file(s)", app_name, version, len(entries))
    return BuiltManifest(manifest=manifest, text=render_manifest(manifest))
