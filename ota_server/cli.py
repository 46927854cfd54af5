#!/usr/bin/env python3
"""Command-line entry point for the OTA update server.

Usage examples:
  python -m ota_server.cli serve
  python -m ota_server.cli generate --app robo --version 2.0.0 \\
      --file build/robo:/usr/local/bin/robo:restart
  python -m ota_server.cli generate --app robo --version 2.0.1 --publish \\
      --file build/robo:/usr/local/bin/robo --file conf/robo.toml:/etc/robo.toml:2.0.0
"""
import argparse
import logging
import shutil
import sys
from pathlib import Path

from ota_server.config import settings
from ota_server.errors import OTAError
from ota_server.log_setup import configure_logging
from ota_server.manifest import repository
from ota_server.manifest.builder import ManifestFile, ManifestOptions, build_manifest

logger = logging.getLogger(__name__)


def parse_file_spec(spec: str) -> ManifestFile:
    """Parse ``SRC:TARGET[:VERSION][:restart]``."""
    parts = spec.split(":")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise argparse.ArgumentTypeError(f"invalid file spec '{spec}', expected SRC:TARGET[:VERSION][:restart]")
    version = None
    restart = False
    for extra in parts[2:]:
        if extra == "restart":
            restart = True
        elif extra:
            version = extra
    return ManifestFile(source_path=parts[0], target=parts[1], version=version, restart=restart)


def publish_sources(app_name: str, files: list[ManifestFile]) -> list[ManifestFile]:
    destination = repository.binary_dir(app_name)
    destination.mkdir(parents=True, exist_ok=True)
    published = []
    for spec in files:
        target_path = destination / Path(spec.source_path).name
        shutil.copy2(spec.source_path, target_path)
        logger.info("Published %s -> %s", spec.source_path, target_path)
        published.append(
            ManifestFile(
                source_path=str(target_path),
                target=spec.target,
                name=spec.name,
                version=spec.version,
                restart=spec.restart,
            )
        )
    return published


def cmd_serve(args) -> int:
    import uvicorn

    logger.info("Listening on %s:%d", args.host, args.port)
    uvicorn.run("ota_server.main:app", host=args.host, port=args.port, reload=False)
    return 0


def cmd_generate(args) -> int:
    files = args.file or []
    options = ManifestOptions(base_url=args.base_url, restart_cmd=args.restart_cmd)
    try:
        if args.publish:
            files = publish_sources(args.app, files)
        built = build_manifest(files, args.version, args.app, options)
    except (OTAError, OSError) as exc:
        print(f"Failed to generate manifest: {exc}", file=sys.stderr)
        return 1
    if not args.dry_run:
        path = repository.write_manifest(args.app, built)
        print(f"Wrote {path}", file=sys.stderr)
    sys.stdout.write(built.text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ota-server")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP server")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    serve.set_defaults(func=cmd_serve)

    gen = sub.add_parser("generate", help="build and store an application's version.yaml")
    gen.add_argument("--app", required=True, help="application name")
    gen.add_argument("--version", required=True, help="manifest version")
    gen.add_argument(
        "--file",
        action="append",
        type=parse_file_spec,
        help="SRC:TARGET[:VERSION][:restart], repeatable",
    )
    gen.add_argument("--base-url", help="override the configured base URL")
    gen.add_argument("--restart-cmd", help="override the configured restart command ('' to omit)")
    gen.add_argument("--publish", action="store_true", help="copy sources into the app's files directory first")
    gen.add_argument("--dry-run", action="store_true", help="print the manifest without writing it")
    gen.set_defaults(func=cmd_generate)
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
