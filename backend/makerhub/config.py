import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from makerhub.env_utils import env_flag, env_float, env_int, sanitize_env_value

load_dotenv()


class Config:
    """应用配置 (导入时读取一次)"""
    SECRET_KEY = sanitize_env_value(os.getenv('SECRET_KEY'), 'makerhub-secret-key')

    # API 配置
    API_PREFIX = '/api'

    # CORS allowlist (comma-separated origins)
    # Example:
    # CORS_ALLOWED_ORIGINS=https://makerhub.dev,https://www.makerhub.dev
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ALLOWED_ORIGINS', '').split(',')
        if origin.strip()
    ]

    LOG_LEVEL = sanitize_env_value(os.getenv('LOG_LEVEL'), 'INFO').upper()

    # Upper bound for a single data-layer call issued by a request handler.
    REQUEST_TIMEOUT_SECONDS = env_float(os.getenv('REQUEST_TIMEOUT_SECONDS'), 10.0)

    # Include raw backend error text in degraded responses.
    API_DIAGNOSTICS = env_flag(os.getenv('API_DIAGNOSTICS'))

    DEV_SEED_TOKEN = sanitize_env_value(os.getenv('DEV_SEED_TOKEN'))
    # Admin endpoints fall back to the seed token for local development.
    ADMIN_API_TOKEN = sanitize_env_value(os.getenv('ADMIN_API_TOKEN')) or DEV_SEED_TOKEN


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings for the data layer.

    ``database_url`` wins over the REST pair when both are present.
    """
    database_url: Optional[str] = None
    rest_url: Optional[str] = None
    rest_key: Optional[str] = None
    include_pending_in_approved: bool = False
    pool_max_size: int = 15
    statement_timeout_ms: int = 15000
    acquire_timeout_seconds: float = 8.0
    rest_connect_timeout_seconds: float = 3.0
    rest_timeout_seconds: float = 8.0

    @property
    def has_database_url(self) -> bool:
        return bool(self.database_url)

    @property
    def has_rest_credentials(self) -> bool:
        return bool(self.rest_url) and bool(self.rest_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'DatabaseSettings':
        env = os.environ if environ is None else environ

        # A configured seed token means a development deployment: show seeded
        # pending rows wherever "approved" is requested.
        include_pending = (
            env_flag(env.get('DEV_INCLUDE_PENDING_IN_APPROVED'))
            or bool(sanitize_env_value(env.get('DEV_SEED_TOKEN')))
        )

        return cls(
            database_url=sanitize_env_value(env.get('DATABASE_URL')) or None,
            rest_url=sanitize_env_value(env.get('SUPABASE_URL')).rstrip('/') or None,
            rest_key=sanitize_env_value(env.get('SUPABASE_KEY')) or None,
            include_pending_in_approved=include_pending,
            pool_max_size=max(1, env_int(env.get('DB_POOL_MAX_SIZE'), 15)),
            statement_timeout_ms=env_int(env.get('DB_STATEMENT_TIMEOUT_MS'), 15000),
        )
