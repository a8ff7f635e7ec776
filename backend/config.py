"""Application settings loaded from .env file."""
import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_BACKEND_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Metadata store (also introspected as the live schema)
    DATABASE_URL: str = "sqlite:///./codegen.db"

    # Generator
    TABLE_PREFIX: str = "la_"
    REMOVE_TABLE_PREFIX: bool = True
    GEN_AUTHOR: str = ""
    PACKAGE_NAME: str = "gencode"
    EXCLUDED_TABLE_PREFIXES: str = "qrtz_,gen_"
    TEMPLATE_DIR: str = str(_BACKEND_DIR / "templates")

    # Downloads
    DOWNLOAD_DIR: str = str(Path(tempfile.gettempdir()) / "codegen-downloads")
    DOWNLOAD_FILENAME: str = "codegen.zip"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def excluded_prefix_list(self) -> list[str]:
        return [p.strip() for p in self.EXCLUDED_TABLE_PREFIXES.split(",") if p.strip()]

    @property
    def gen_table_name(self) -> str:
        return f"{self.TABLE_PREFIX}gen_table"

    @property
    def gen_column_table_name(self) -> str:
        return f"{self.TABLE_PREFIX}gen_table_column"


settings = Settings()
