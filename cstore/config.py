# cstore/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Optional DATABASE_URL overrides the DB_* settings
- Missing database settings are reported when the engine is created,
  so the package can be imported (and tested) without a database
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Optional, Tuple
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _as_list(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip().lower() for v in value if str(v).strip())
    return tuple(v.strip().lower() for v in str(value).split(',') if v.strip())


@dataclass
class DatabaseConfig:
    """Database configuration container"""
    host: str = ""
    port: int = 3306
    user: str = ""
    password: str = ""
    database: str = "cstore"
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'url': self.url,
        }

    def is_configured(self) -> bool:
        return bool(self.url) or all([self.host, self.user, self.password])


class Config:
    """
    Centralized configuration management

    Usage:
        from cstore.config import config

        # Get database config
        db_config = config.get_db_config()

        # Get app settings
        chunk_size = config.get_app_setting("UPLOAD_CHUNK_SIZE", 500)

        # Admin check
        if config.is_admin_email(user_email):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        self._settings: Dict[str, Any] = {}
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        db_secrets = st.secrets.get("DB_CONFIG", {})
        self._db_config = DatabaseConfig(
            host=db_secrets.get("host", ""),
            port=int(db_secrets.get("port", 3306)),
            user=db_secrets.get("user", ""),
            password=db_secrets.get("password", ""),
            database=db_secrets.get("database", "cstore"),
            url=db_secrets.get("url") or st.secrets.get("DATABASE_URL"),
        )

        self._settings = dict(st.secrets.get("APP", {}))

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._db_config = DatabaseConfig(
            host=os.getenv("DB_HOST", ""),
            port=int(os.getenv("DB_PORT", "3306")),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_NAME", os.getenv("DB_DATABASE", "cstore")),
            url=os.getenv("DATABASE_URL") or None,
        )

        if not self._db_config.is_configured():
            logger.warning("Database configuration incomplete - set DB_HOST/DB_USER/DB_PASSWORD or DATABASE_URL")

        logger.info("💻 Running in LOCAL environment")

    def _setting(self, key: str, default: str) -> Any:
        """Cloud APP section first, then environment."""
        if key in self._settings:
            return self._settings[key]
        return os.getenv(key, default)

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Session
            "SESSION_TIMEOUT_HOURS": int(self._setting("SESSION_TIMEOUT_HOURS", "8")),

            # Database pool
            "DB_POOL_SIZE": int(self._setting("DB_POOL_SIZE", "5")),
            "DB_POOL_RECYCLE": int(self._setting("DB_POOL_RECYCLE", "3600")),

            # Cache
            "CACHE_TTL_SECONDS": int(self._setting("CACHE_TTL_SECONDS", "300")),

            # Business logic
            "UPLOAD_CHUNK_SIZE": int(self._setting("UPLOAD_CHUNK_SIZE", "500")),
            "ADMIN_EMAILS": _as_list(self._setting("ADMIN_EMAILS", "admin@cstore.com")),
            "CURRENCY": str(self._setting("CURRENCY", "EGP")),

            # Feature flags
            "ENABLE_DEBUG_MODE": _as_bool(self._setting("ENABLE_DEBUG_MODE", "false")),
        }

    def _log_config_status(self):
        """Log configuration status"""
        if self._db_config.url:
            logger.info("✅ Database: DATABASE_URL")
        elif self._db_config.is_configured():
            logger.info(f"✅ Database: {self._db_config.host}/{self._db_config.database}")
        else:
            logger.info("⚠️ Database: Not configured")
        logger.info(f"✅ Admin emails: {len(self._app_config['ADMIN_EMAILS'])}")

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration as dictionary"""
        return self._db_config.to_dict()

    def is_db_configured(self) -> bool:
        return self._db_config.is_configured()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, False)

    def is_admin_email(self, email: Optional[str]) -> bool:
        """Case-insensitive match against ADMIN_EMAILS"""
        if not email:
            return False
        return email.strip().lower() in self._app_config["ADMIN_EMAILS"]

    # ==================== PROPERTIES ====================

    @property
    def db_config(self) -> Dict[str, Any]:
        return self.get_db_config()

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'DatabaseConfig',
    'IS_RUNNING_ON_CLOUD',
    'APP_CONFIG',
]
