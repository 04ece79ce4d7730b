# tests/test_access_control.py
from sqlalchemy import text

from cstore.auth import AuthManager
from cstore.branch_performance.access_control import AccessControl


def test_viewer_permissions():
    access = AccessControl(is_privileged=False)
    assert access.can_view_dashboard()
    assert access.can_export()
    assert not access.can_upload()
    assert not access.can_edit_targets()
    assert access.get_access_level() == 'viewer'


def test_admin_permissions():
    access = AccessControl(is_privileged=True)
    assert access.can_upload()
    assert access.can_edit_targets()
    assert access.get_access_level() == 'admin'
    assert 'admin' in repr(access)


def test_privileged_by_role_or_admin_email():
    assert AuthManager.is_privileged('someone@cstore.com', 'admin')
    assert AuthManager.is_privileged(' Admin@CStore.com ', 'viewer')
    assert not AuthManager.is_privileged('someone@cstore.com', 'viewer')
    assert not AuthManager.is_privileged(None, None)


def _add_user(engine, email, password, role='viewer', is_active=1):
    pwd_hash, salt = AuthManager.hash_password(password)
    with engine.begin() as conn:
        conn.execute(text("""
            INSERT INTO users (email, password_hash, password_salt, full_name, role, is_active)
            VALUES (:email, :hash, :salt, :name, :role, :active)
        """), {'email': email, 'hash': pwd_hash, 'salt': salt, 'name': 'Test User',
               'role': role, 'active': is_active})


def test_authenticate(sqlite_engine):
    _add_user(sqlite_engine, 'manager@cstore.com', 's3cret', role='admin')
    auth = AuthManager(engine=sqlite_engine)

    ok, user = auth.authenticate('Manager@cstore.com', 's3cret')
    assert ok
    assert user['role'] == 'admin'
    assert user['full_name'] == 'Test User'

    with sqlite_engine.connect() as conn:
        last_login = conn.execute(text("SELECT last_login FROM users")).scalar()
    assert last_login is not None


def test_authenticate_failures(sqlite_engine):
    _add_user(sqlite_engine, 'viewer@cstore.com', 'pw')
    _add_user(sqlite_engine, 'gone@cstore.com', 'pw', is_active=0)
    auth = AuthManager(engine=sqlite_engine)

    assert auth.authenticate('viewer@cstore.com', 'wrong') == (False, {"error": "Invalid email or password"})
    assert auth.authenticate('nobody@cstore.com', 'pw')[0] is False
    ok, result = auth.authenticate('gone@cstore.com', 'pw')
    assert not ok and 'inactive' in result['error']
