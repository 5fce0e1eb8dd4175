# src/repo_score/config/settings.py
"""Settings and environment variables for the repo score analyzer."""

from typing import List, Optional

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    github_token: Optional[str] = None
    output_dir: str = "output"
    cache_dir: str = "cache"
    max_retries: int = 3
    backoff_base: float = 1.0
    rejection_labels: List[str] = ["wontfix", "invalid", "duplicate"]
    scoring_policy: str = "capped"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("scoring_policy", mode="before")
    @classmethod
    def normalize_policy(cls, value: str) -> str:
        """Accept the policy name in any case."""
        value = str(value).strip().lower()
        if value not in ("capped", "flat"):
            raise ValueError(f"Unknown scoring policy: {value}")
        return value

    @field_validator("max_retries")
    @classmethod
    def check_retries(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_retries must be at least 1")
        return value


def get_settings() -> Settings:
    """Get the application settings."""
    # Pydantic will automatically handle loading from .env and validation
    return Settings()
