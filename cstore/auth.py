# cstore/auth.py
"""
Authentication Manager for Streamlit Apps

Version: 1.0.0
Features:
- Email + password login against the users table
- SHA256 + salt password hashing
- Admin flag: role 'admin' or email listed in ADMIN_EMAILS
- Session management with timeout
"""

import streamlit as st
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple
import logging
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from .db import get_db_engine
from .config import config

logger = logging.getLogger(__name__)

ADMIN_ROLES = ['admin']


class AuthManager:
    """
    Authentication manager for Streamlit apps

    Usage:
        auth = AuthManager()
        if not auth.check_session():
            ...
        access = AccessControl(is_privileged=auth.is_admin())
    """

    def __init__(self, engine=None):
        self._engine = engine
        self.session_timeout = timedelta(
            hours=config.get_app_setting("SESSION_TIMEOUT_HOURS", 8)
        )

    @property
    def engine(self):
        if self._engine is None:
            self._engine = get_db_engine()
        return self._engine

    # ==================== PASSWORD HASHING ====================

    @staticmethod
    def hash_password(password: str, salt: str = None) -> Tuple[str, str]:
        """
        Hash password with SHA256 + salt

        Returns:
            Tuple of (hash, salt)
        """
        if not salt:
            salt = secrets.token_hex(32)

        pwd_hash = hashlib.sha256((password + salt).encode()).hexdigest()
        return pwd_hash, salt

    def verify_password(self, password: str, stored_hash: str, salt: str) -> bool:
        pwd_hash, _ = self.hash_password(password, salt)
        return secrets.compare_digest(pwd_hash, stored_hash or "")

    # ==================== AUTHENTICATION ====================

    def authenticate(self, email: str, password: str) -> Tuple[bool, Optional[Dict]]:
        """
        Authenticate user against database

        Returns:
            Tuple of (success: bool, user_info: dict or error: dict)
        """
        email = (email or "").strip().lower()
        try:
            query = text("""
                SELECT id, email, password_hash, password_salt, full_name, role, is_active
                FROM users
                WHERE LOWER(email) = :email
            """)

            with self.engine.connect() as conn:
                result = conn.execute(query, {'email': email}).fetchone()

            if not result:
                logger.warning(f"Login attempt for non-existent user: {email}")
                return False, {"error": "Invalid email or password"}

            user = dict(result._mapping)

            if not user['is_active']:
                logger.warning(f"Login attempt for inactive user: {email}")
                return False, {"error": "Account is inactive. Please contact administrator."}

            if not self.verify_password(password, user['password_hash'], user['password_salt']):
                logger.warning(f"Invalid password for user: {email}")
                return False, {"error": "Invalid email or password"}

            self._update_last_login(user['id'])

            logger.info(f"User {email} authenticated successfully")

            return True, {
                'id': user['id'],
                'email': user['email'],
                'role': user['role'] or 'viewer',
                'full_name': user['full_name'] or user['email'],
                'login_time': datetime.now()
            }

        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Authentication error: {e}")
            return False, {"error": "Authentication failed. Please try again."}

    def _update_last_login(self, user_id: int):
        """Update user's last login timestamp"""
        try:
            query = text("UPDATE users SET last_login = :now WHERE id = :user_id")
            with self.engine.begin() as conn:
                conn.execute(query, {'now': datetime.now(), 'user_id': user_id})
        except SQLAlchemyError as e:
            logger.warning(f"Could not update last_login: {e}")

    # ==================== SESSION MANAGEMENT ====================

    def check_session(self) -> bool:
        """Check if user session is valid and not expired"""
        if not st.session_state.get('authenticated'):
            return False

        login_time = st.session_state.get('login_time')
        if login_time:
            elapsed = datetime.now() - login_time
            if elapsed > self.session_timeout:
                logger.info(f"Session expired for user: {st.session_state.get('user_email')}")
                self.logout()
                return False

        return True

    def login(self, user_info: Dict):
        """Initialize user session after successful authentication"""
        st.session_state.authenticated = True
        st.session_state.user_id = user_info['id']
        st.session_state.user_email = user_info['email']
        st.session_state.user_role = user_info['role']
        st.session_state.user_fullname = user_info['full_name']
        st.session_state.login_time = user_info['login_time']

        logger.info(f"User {user_info['email']} logged in successfully")

    def logout(self):
        """Clear user session and cached dashboard data"""
        email = st.session_state.get('user_email', 'Unknown')

        auth_keys = [
            'authenticated', 'user_id', 'user_email', 'user_role',
            'user_fullname', 'login_time'
        ]
        for key in auth_keys:
            if key in st.session_state:
                del st.session_state[key]

        for key in [k for k in st.session_state.keys() if str(k).startswith('_bp_')]:
            del st.session_state[key]

        logger.info(f"User {email} logged out")

    # ==================== ACCESS CONTROL ====================

    @staticmethod
    def is_privileged(email: Optional[str], role: Optional[str]) -> bool:
        """Admin role, or an email configured in ADMIN_EMAILS"""
        if role and role.lower() in ADMIN_ROLES:
            return True
        return config.is_admin_email(email)

    def is_admin(self) -> bool:
        """Check if current user is admin"""
        return self.is_privileged(
            st.session_state.get('user_email'),
            st.session_state.get('user_role'),
        )

    # ==================== USER INFO HELPERS ====================

    def get_user_display_name(self) -> str:
        if st.session_state.get('user_fullname'):
            return st.session_state.user_fullname
        return st.session_state.get('user_email', 'User')


__all__ = [
    'AuthManager',
    'ADMIN_ROLES',
]
