from .base import BaseConfig


class TestConfig(BaseConfig):
    environment: str = "test"
    database_url: str = "sqlite://"
    metrics_enabled: bool = False
