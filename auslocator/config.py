"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration, read from environment / .env file."""

    # Australia Post PAC
    australia_post_api_key: str = ""
    australia_post_base_url: str = "https://api.auspost.com.au"

    # Elasticsearch (empty node disables interaction logging)
    elasticsearch_node: str = "http://localhost:9200"
    elasticsearch_api_key: str = ""
    elasticsearch_verify_certs: bool = False
    logs_index: str = "aus-address-locator-logs"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"
    log_level: str = "INFO"
    server_side_logging: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def has_australia_post_key(self) -> bool:
        return bool(self.australia_post_api_key)

    @property
    def logging_configured(self) -> bool:
        return bool(self.elasticsearch_node)

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",")]


settings = Settings()
