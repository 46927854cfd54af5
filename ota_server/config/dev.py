from .base import BaseConfig


class DevConfig(BaseConfig):
    environment: str = "dev"
    log_level: str = "DEBUG"
