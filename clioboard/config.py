from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 9000
    db_file: Path = Path("clio_board.db")
    log_level: str = "INFO"
    agent_api_key: str = ""

    model_config = {"env_prefix": "CLIO_", "env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
