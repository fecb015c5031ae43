"""Application configuration using pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_project_root() -> Path:
    """
    Find the project root directory.
    Works whether running from backend/ or project root.
    """
    cwd = Path.cwd()
    if cwd.name == "backend" and (cwd.parent / "pyproject.toml").exists():
        return cwd.parent
    if (cwd / "backend").exists() and (cwd / "pyproject.toml").exists():
        return cwd
    # Fallback to current directory
    return cwd


def resolve_database_path(db_url: str, project_root: Path) -> str:
    """
    Resolve the database URL to use an absolute path.
    Handles relative paths correctly regardless of working directory.
    """
    if db_url.startswith("sqlite") and ":memory:" not in db_url:
        # Format: sqlite+aiosqlite:///path or sqlite:///path
        prefix_end = db_url.find(":///") + 4
        prefix = db_url[:prefix_end]
        path = db_url[prefix_end:]

        if path.startswith("./") or not path.startswith("/"):
            clean_path = path.lstrip("./")
            absolute_path = project_root / clean_path
            return f"{prefix}{absolute_path}"

    return db_url


_project_root = get_project_root()

# Find the .env file - check project root first, then current directory
_env_file = _project_root / ".env"
if not _env_file.exists():
    _env_file = Path(".env")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_env_file),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Keys - an empty key means the text generator is unavailable
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Text generation
    llm_provider: Literal["anthropic", "openai"] = "anthropic"
    model_interview: str = "claude-haiku-4-5"
    model_interview_openai: str = "gpt-4o-mini"
    llm_max_tokens: int = 900
    llm_temperature: float = 0.6
    llm_timeout_seconds: float = 60.0

    # One initial attempt plus one strict-JSON retry
    structured_output_max_attempts: int = 2

    # Interview limits
    max_answer_length: int = 3000
    transcript_limit: int = 20
    score_window: int = 10

    # Profile defaults for freshly created sessions
    default_mode: Literal["behavioral", "technical", "mixed"] = "mixed"
    default_target_role: str = "Software Engineering Intern"
    default_level: Literal["intern", "newgrad", "mid"] = "intern"

    # Database - stored at project root ./data/
    database_url: str = f"sqlite+aiosqlite:///{_project_root}/data/interview_coach.db"

    def __init__(self, **data):
        super().__init__(**data)
        resolved_db = resolve_database_path(self.database_url, _project_root)
        object.__setattr__(self, 'database_url', resolved_db)

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000", "http://localhost:8787"]


settings = Settings()
