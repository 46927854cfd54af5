from .base import BaseConfig


class ProdConfig(BaseConfig):
    environment: str = "prod"
    auto_create_schema: bool = False
