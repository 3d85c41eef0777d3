import os
from pathlib import Path
import logging
import warnings
from typing import Annotated, Any, List, Literal, Optional

from pydantic import (
    AnyUrl,
    BeforeValidator,
    computed_field,
)
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def get_env_files() -> list[str]:
    """Get the appropriate .env files based on the environment.
    Returns a list of env files in order of precedence (later files override earlier ones).
    """
    working_dir = Path(os.getcwd())
    env_files = []

    # A mounted .env file wins over the per-environment ones
    mounted_env = working_dir / ".env"
    if mounted_env.exists():
        logger.debug(f"Found mounted .env file at: {mounted_env}")
        env_files.append(str(mounted_env))
        return env_files

    env_type = os.getenv("ENVIRONMENT", "local")
    if env_type in ["local", "staging", "production"]:
        env_file = working_dir / "env-config" / env_type / ".env"
        if env_file.exists():
            logger.debug(f"Found environment specific file at: {env_file}")
            env_files.append(str(env_file))

    if not env_files and env_type != "local":
        warnings.warn("No .env files found!", stacklevel=2)

    return env_files


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=get_env_files(),
        env_ignore_empty=True,
        extra="ignore",
    )

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    PROJECT_NAME: str = "NewsFeed"
    API_V1_STR: str = "/api/v1"
    FRONTEND_HOST: str = "http://localhost:3000"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    # NewsAPI settings
    NEWS_API_KEY: Optional[str] = None
    NEWS_API_BASE_URL: str = "https://newsapi.org/v2"
    # Comma separated, passed through to NewsAPI as excludeDomains
    NEWS_EXCLUDED_DOMAINS: str = "rlsbb.cc"

    # OpenAI settings
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o"

    # Azure OpenAI settings, used instead of OpenAI when the endpoint is set
    AZURE_OPENAI_ENDPOINT: Optional[str] = None
    AZURE_OPENAI_API_KEY: Optional[str] = None
    AZURE_OPENAI_API_VERSION: str = "2024-06-01"
    AZURE_OPENAI_DEPLOYMENT_NAME: str = "gpt-4o-mini"

    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Cache database settings
    DEBUG_SQL: bool = False
    DATABASE_URL: Optional[str] = None
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = ""

    CACHE_TIMEZONE: str = "UTC"
    # 0 disables the background sweep of expired cache rows
    CACHE_SWEEP_INTERVAL_SECONDS: int = 60 * 60

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> Optional[str]:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if not (self.POSTGRES_SERVER and self.POSTGRES_USER):
            return None
        return str(
            MultiHostUrl.build(
                scheme="postgresql+psycopg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def use_azure_openai(self) -> bool:
        return bool(self.AZURE_OPENAI_ENDPOINT)

    def credential_status(self) -> dict[str, bool]:
        """Presence of every credential the news pipeline depends on"""
        llm_key = "AZURE_OPENAI_API_KEY" if self.use_azure_openai else "OPENAI_API_KEY"
        return {
            "NEWS_API_KEY": bool(self.NEWS_API_KEY),
            llm_key: bool(getattr(self, llm_key)),
            "DATABASE_URL": bool(self.SQLALCHEMY_DATABASE_URI),
        }

    def missing_credentials(self) -> List[str]:
        return [name for name, present in self.credential_status().items() if not present]


settings = Settings()  # type: ignore
