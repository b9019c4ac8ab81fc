"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env during development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Symmetric secret (at least 32 bytes) signing every issued token.
        Validated once at startup by :class:`~advent_auth.infra.jwt.signing_key.SigningKey`.
    ACCESS_TOKEN_TTL_SECONDS, REFRESH_TOKEN_TTL_SECONDS, TEMP_TOKEN_TTL_SECONDS: int
        Lifetimes of the three token kinds.
    AUTH_COOKIE_SECURE: bool
        Emits token cookies with the ``Secure`` attribute.
    AUTH_REQUIRE_LOGIN_STATE: bool
        Rejects provider callbacks whose ``state`` was not issued by us.
    AUTH_ROTATE_REFRESH_TOKENS: bool
        Issues a new refresh token (and drops the old one) on every refresh.
    REFRESH_TOKEN_BACKEND: str
        ``sql`` (default), ``redis`` or ``memory``.
    LOGIN_STATE_BACKEND: str
        ``redis`` (default when ``REDIS_URL`` is set) or ``memory``.
        ``memory`` is per-process, so multi-worker deployments need Redis.
    FRONTEND_URL: str
        Base URL the OAuth callbacks redirect to.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes. Secrets are never logged.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME")

    # Token lifetimes
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 60 * 60)
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_TTL_SECONDS", 30 * 24 * 60 * 60)
    TEMP_TOKEN_TTL_SECONDS = env_int("TEMP_TOKEN_TTL_SECONDS", 5 * 60)

    # Auth behavior
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", True)
    AUTH_REQUIRE_LOGIN_STATE = env_bool("AUTH_REQUIRE_LOGIN_STATE", True)
    AUTH_ROTATE_REFRESH_TOKENS = env_bool("AUTH_ROTATE_REFRESH_TOKENS", False)
    REFRESH_TOKEN_BACKEND = os.getenv("REFRESH_TOKEN_BACKEND", "sql")
    LOGIN_STATE_BACKEND = os.getenv(
        "LOGIN_STATE_BACKEND", "redis" if os.getenv("REDIS_URL") else "memory"
    )
    LOGIN_STATE_TTL_SECONDS = env_int("LOGIN_STATE_TTL_SECONDS", 10 * 60)
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Identity providers
    NAVER_CLIENT_ID = os.getenv("NAVER_CLIENT_ID", "")
    NAVER_CLIENT_SECRET = os.getenv("NAVER_CLIENT_SECRET", "")
    NAVER_REDIRECT_URI = os.getenv(
        "NAVER_REDIRECT_URI", "http://localhost:8000/api/v1/auth/oauth/naver/callback"
    )
    KAKAO_CLIENT_ID = os.getenv("KAKAO_CLIENT_ID", "")
    KAKAO_CLIENT_SECRET = os.getenv("KAKAO_CLIENT_SECRET", "")
    KAKAO_REDIRECT_URI = os.getenv(
        "KAKAO_REDIRECT_URI", "http://localhost:8000/api/v1/auth/oauth/kakao/callback"
    )
    FEDERATION_HTTP_TIMEOUT = float(os.getenv("FEDERATION_HTTP_TIMEOUT", "10"))

    # DB / cache
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL", "")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode, allows plain-HTTP cookies, and ships a long
    development-only signing secret so the app boots without a ``.env``.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes
    JWT_SECRET_KEY = os.getenv(
        "JWT_SECRET_KEY", "development-only-signing-secret-do-not-deploy-0000000000000000000001"
    )
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps every auth store in process memory.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    JWT_SECRET_KEY = "testing-signing-secret-padded-to-the-sha512-block-size-000000000001"
    REFRESH_TOKEN_BACKEND = "memory"
    LOGIN_STATE_BACKEND = "memory"
    REDIS_URL = ""
    FRONTEND_URL = "http://frontend.test"
    NAVER_CLIENT_ID = "naver-test-client"
    NAVER_CLIENT_SECRET = "naver-test-secret"
    NAVER_REDIRECT_URI = "http://localhost/api/v1/auth/oauth/naver/callback"
    KAKAO_CLIENT_ID = "kakao-test-client"
    KAKAO_CLIENT_SECRET = "kakao-test-secret"
    KAKAO_REDIRECT_URI = "http://localhost/api/v1/auth/oauth/kakao/callback"
    USE_PROXYFIX = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled. ``JWT_SECRET_KEY`` must be provided
    by the environment; the placeholder default fails key validation at boot.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
