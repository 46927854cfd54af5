"""Text rendering for manifests.

Agents in the field read ``version.yaml`` with line-oriented pattern
matching, so the field names, their order and the quoting below are fixed.
The digest field stays ``sha256`` whatever algorithm produced it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ota_server.manifest.builder import Manifest


def render_manifest(manifest: "Manifest") -> str:
    lines = [f'version: "{manifest.version}"', "files:"]
    for entry in manifest.files:
        lines.append(f'  - name: "{entry.name}"')
        lines.append(f'    url: "{entry.url}"')
        lines.append(f'    sha256: "{entry.sha256}"')
        lines.append(f'    target: "{entry.target}"')
        if entry.version and entry.version != manifest.version:
            lines.append(f'    version: "{entry.version}"')
        if entry.restart:
            lines.append("    restart: true")
    if manifest.restart_cmd:
        lines.append(f"restart_cmd: '{manifest.restart_cmd}'")
    return "\n".join(lines) + "\n"
