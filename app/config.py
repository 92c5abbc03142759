"""Application configuration via environment variables."""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Upstream (Exa Websets API)
    exa_api_key: str = ""
    exa_base_url: str = "https://api.exa.ai"
    upstream_timeout_seconds: float = 30.0

    # Job retention
    job_sweep_interval_minutes: int = 60
    job_max_age_minutes: int = 1440
    job_preserve_completed: bool = True
    job_max_records: int = 10000

    # HTTP service
    service_port: int = 3000
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
