from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalysisConfig(BaseModel):
    """Resolved settings for the remote analysis endpoint."""
    enabled: bool = True
    url: str
    timeout_seconds: float = 15.0
    timeline_window: int = 25  # most recent timeline texts sent as context
    transcript_window: int = 5000  # trailing transcript characters sent as context


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # --- Remote analysis endpoint ---
    analysis_enabled: bool = True
    analysis_url: str = "http://127.0.0.1:8080/api/clinote/analyze"
    analysis_timeout_seconds: float = 15.0
    analysis_timeline_window: int = 25
    analysis_transcript_window: int = 5000

    # --- Classification ---
    mixed_split_min_offset: int = 8
    max_questions: int = 6
    max_suggestions: int = 6
    default_active_section: str = "chief_complaint"

    # --- Local SQLite ---
    sqlite_db_path: Path = Path("data/clinote.db")

    # --- Web interface ---
    web_host: str = "0.0.0.0"
    web_port: int = 8080
    auth_enabled: bool = True
    auth_username: str = "admin"
    auth_password: str = "admin"

    @property
    def sqlite_url(self) -> str:
        return f"sqlite:///{self.sqlite_db_path}"

    def get_analysis_config(self) -> AnalysisConfig:
        return AnalysisConfig(
            enabled=self.analysis_enabled,
            url=self.analysis_url,
            timeout_seconds=self.analysis_timeout_seconds,
            timeline_window=self.analysis_timeline_window,
            transcript_window=self.analysis_transcript_window,
        )


settings = Settings()
