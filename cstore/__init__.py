# cstore/__init__.py
"""
Shared Utilities Package for the C Store Sales Dashboard

This package contains common utilities shared across all pages:
- auth: Authentication and session management
- config: Configuration management (local + Streamlit Cloud)
- db: Database connection management with pooling
- branch_performance: dashboard engines, stores and fragments

Usage:
    from cstore.auth import AuthManager
    from cstore.db import get_db_engine
    from cstore.config import config

    # Or import commonly used items directly
    from cstore import AuthManager, get_db_engine, config
"""

# Authentication
from .auth import AuthManager

# Configuration
from .config import (
    config,
    Config,
    IS_RUNNING_ON_CLOUD,
    APP_CONFIG,
)

# Database
from .db import (
    get_db_engine,
    check_db_connection,
    get_connection_pool_status,
)

__all__ = [
    # Auth
    'AuthManager',

    # Config
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'APP_CONFIG',

    # Database
    'get_db_engine',
    'check_db_connection',
    'get_connection_pool_status',
]

__version__ = '1.0.0'
