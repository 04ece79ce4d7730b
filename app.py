# app.py
"""
C Store Online Sales Dashboard - Main Entry Point

Version: 1.0.0
"""

import streamlit as st
from cstore.auth import AuthManager
from cstore.config import config
from cstore.db import check_db_connection, get_connection_pool_status
import logging

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.is_feature_enabled("DEBUG_MODE") else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "C Store Online Sales"
APP_ICON = "🏪"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=f"{APP_NAME} Dashboard",
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #E31782;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .welcome-box {
        background: linear-gradient(135deg, #E31782 0%, #ff5fa8 100%);
        color: white;
        padding: 2rem;
        border-radius: 0.75rem;
        margin-bottom: 2rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.5rem;
        border-radius: 0.5rem;
        border-left: 4px solid #E31782;
        margin-bottom: 1rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)

# ==================== INITIALIZATION ====================

auth = AuthManager()

# ==================== HELPER FUNCTIONS ====================

def show_login_page():
    """Display the login page"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Branch & Channel Performance Dashboard</p>', unsafe_allow_html=True)

    db_ok, db_error = check_db_connection()
    if not db_ok:
        st.error(f"⚠️ {db_error}")
        st.info("Please check the database settings (.env or secrets.toml).")
        return

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        with st.form("login_form", clear_on_submit=False):
            st.markdown("#### 🔐 Login")

            email = st.text_input("Email", placeholder="you@cstore.com", key="login_email")
            password = st.text_input("Password", type="password",
                                     placeholder="Enter your password", key="login_password")

            submit = st.form_submit_button("🔑 Login", type="primary", use_container_width=True)

            if submit:
                if not email or not password:
                    st.warning("Please enter both email and password")
                else:
                    with st.spinner("Authenticating..."):
                        success, result = auth.authenticate(email, password)

                    if success:
                        auth.login(result)
                        st.rerun()
                    else:
                        st.error(result.get("error", "Authentication failed"))

        hours = config.get_app_setting("SESSION_TIMEOUT_HOURS", 8)
        st.caption(f"Session expires after {hours} hours.")


def show_main_app():
    """Display the main application after login"""
    is_admin = auth.is_admin()

    with st.sidebar:
        st.markdown(f"### 👤 {auth.get_user_display_name()}")
        if is_admin:
            st.success("🔓 Administrator")
        else:
            st.info("👁️ Viewer")
        st.markdown("---")

        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            st.rerun()

    st.markdown(f"""
    <div class="welcome-box">
        <div style="font-size: 1.75rem; font-weight: 600;">Welcome, {auth.get_user_display_name()}! 👋</div>
        <div style="opacity: 0.9;">Select a page from the sidebar menu to get started.</div>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("### 📊 Pages")
    st.markdown("""
    <div class="info-card">
        <strong>🏪 Branch Performance</strong><br>
        <span style="color: #666;">Sales, orders, targets and AOV by branch and channel, monthly reports,
        period comparisons and Excel / PDF export.</span>
    </div>
    <div class="info-card">
        <strong>⚙️ Target Settings</strong><br>
        <span style="color: #666;">Monthly branch targets (administrators only).</span>
    </div>
    """, unsafe_allow_html=True)

    if is_admin:
        st.markdown("---")
        with st.expander("🔧 System Status (Admin Only)"):
            pool_status = get_connection_pool_status()
            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("DB Status", pool_status.get("status", "OK"))
            with col2:
                st.metric("Connections Used", pool_status.get("checked_out", 0))
            with col3:
                st.metric("Available", pool_status.get("checked_in", 0))

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    if not auth.check_session():
        show_login_page()
    else:
        show_main_app()


if __name__ == "__main__":
    main()
