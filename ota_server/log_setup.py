import logging
from pathlib import Path

from ota_server.config.base import BaseConfig

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: BaseConfig) -> None:
    """Send log records to the console and to ``config.log_file``.

    Leaves logging alone when the root logger already has handlers, so a
    host process (or test runner) keeps its own setup.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_file = Path(config.log_file)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    except OSError as exc:
        logging.getLogger(__name__).warning("Logging to console only, cannot open %s: %s", log_file, exc)
    logging.basicConfig(level=config.log_level.upper(), format=LOG_FORMAT, handlers=handlers)
