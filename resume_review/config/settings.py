from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RESUME_REVIEW_",
        extra="ignore",
    )

    data_dir: Path = Path("data")
    sqlite_path: Path = Path("data/records.sqlite3")
    prompts_root: Path = Path("resume_review/prompts")

    record_key_prefix: str = "resume:"
    default_prompt_name: str = "ats_feedback"
    default_prompt_version: str | None = None
    default_model: str = "gpt-5.1"
    validate_feedback_schema: bool = True
    render_scale: float = Field(default=4.0, gt=0)

    log_level: str = "INFO"
    log_file: Path | None = None

    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "RESUME_REVIEW_OPENAI_API_KEY", "OPENAI_API_KEY"
        ),
    )

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parents[2]

    @property
    def resolved_data_dir(self) -> Path:
        return self._resolve_path(self.data_dir)

    @property
    def resolved_sqlite_path(self) -> Path:
        return self._resolve_path(self.sqlite_path)

    @property
    def resolved_prompts_root(self) -> Path:
        return self._resolve_path(self.prompts_root)

    def _resolve_path(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return (self.project_root / path).resolve()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
