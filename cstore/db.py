# cstore/db.py
"""
Database Connection Management

Version: 1.0.0
Features:
- Singleton engine with thread-safe double-checked locking
- Connection pooling with auto-reconnect (MySQL)
- DATABASE_URL for any other SQLAlchemy backend
- Health check utilities
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from urllib.parse import quote_plus
import logging
import threading
from typing import Tuple, Optional, Dict, Any

from .config import config

logger = logging.getLogger(__name__)

# ==================== SINGLETON ENGINE ====================

_engine = None
_engine_lock = threading.Lock()


def get_db_engine() -> Engine:
    """
    Get SQLAlchemy database engine (singleton pattern)

    Raises:
        ValueError: when neither DB_* settings nor DATABASE_URL are configured
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = _create_engine()

    return _engine


def build_database_url(db_config: Dict[str, Any]) -> str:
    """mysql+pymysql URL from DB_* settings, or DATABASE_URL as-is"""
    if db_config.get("url"):
        return db_config["url"]

    if not all([db_config.get("host"), db_config.get("user"), db_config.get("password")]):
        raise ValueError("Missing required database configuration. Please check .env file.")

    user = db_config["user"]
    password = quote_plus(str(db_config["password"]))
    return f"mysql+pymysql://{user}:{password}@{db_config['host']}:{db_config['port']}/{db_config['database']}"


def _create_engine() -> Engine:
    """Create new database engine with configured settings"""
    url = build_database_url(config.get_db_config())
    app_config = config.app_config

    if not url.startswith("mysql"):
        logger.info(f"🔌 Creating database engine: {url.split('://')[0]}://***")
        return create_engine(url, pool_pre_ping=True, echo=False)

    pool_size = app_config.get("DB_POOL_SIZE", 5)
    pool_recycle = app_config.get("DB_POOL_RECYCLE", 3600)

    logger.info(f"🔌 Creating database engine: {url.split('@')[-1]}")

    engine = create_engine(
        url,
        pool_size=pool_size,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,  # Auto-reconnect on stale connections
        echo=False
    )

    logger.info(f"✅ Database engine created (pool_size={pool_size}, recycle={pool_recycle}s)")

    return engine


# ==================== CONNECTION MANAGEMENT ====================

def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Check if database connection is healthy

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    try:
        engine = get_db_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except ValueError as e:
        logger.error(f"❌ Database not configured: {e}")
        return False, str(e)
    except OperationalError as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False, "Cannot connect to database. Please check your network/VPN connection."
    except SQLAlchemyError as e:
        logger.error(f"❌ Database error: {e}")
        return False, f"Database error: {str(e)}"


def get_connection_pool_status() -> Dict[str, Any]:
    """Connection pool statistics for the sidebar debug panel"""
    if _engine is None:
        return {"status": "not_initialized"}

    pool = _engine.pool
    if not hasattr(pool, "checkedout"):
        return {"status": "active", "pool": type(pool).__name__}

    return {
        "status": "active",
        "pool_size": pool.size(),
        "checked_in": pool.checkedin(),
        "checked_out": pool.checkedout(),
        "overflow": pool.overflow(),
    }


__all__ = [
    'get_db_engine',
    'build_database_url',
    'check_db_connection',
    'get_connection_pool_status',
]
