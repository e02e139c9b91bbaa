"""
Archive server configuration using Pydantic BaseSettings.
Loads from .env and provides typed access to all server settings.
"""

from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Storage ──────────────────────────────────────────
    ARCHIVE_PATH: Path = Path("./archive")
    CHUNK_SIZE: int = 64 * 1024
    MAX_UPLOAD_SIZE_GB: float = 20

    # ── Server ───────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def max_upload_size_bytes(self) -> int:
        return int(self.MAX_UPLOAD_SIZE_GB * 1024 * 1024 * 1024)


settings = Settings()
