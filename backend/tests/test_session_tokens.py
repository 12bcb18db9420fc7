"""
Signed session tokens carry a permission snapshot taken at login.
"""

from erp.permissions import PermissionModule as M, PermissionAction as A
from erp.services import session_service, permission_service


def test_token_round_trip(regular_user):
    token = session_service.issue_token(regular_user)
    context = session_service.load_token(token)

    assert context.user_id == regular_user.id
    assert context.email == "user@test.local"
    assert context.role == "User"
    assert context.has_permission(M.SALES, A.WRITE)
    assert not context.has_permission(M.ADMIN, A.READ)
    assert context.issued_at is not None


def test_tampered_token_is_rejected(regular_user):
    token = session_service.issue_token(regular_user)
    head, _, signature = token.rpartition(".")
    tampered = head + "." + ("A" if signature[0] != "A" else "B") + signature[1:]
    assert session_service.load_token(tampered) is None


def test_token_signed_with_other_key_is_rejected(app, regular_user):
    token = session_service.issue_token(regular_user)
    original = app.config["SECRET_KEY"]
    app.config["SECRET_KEY"] = "another-secret"
    try:
        assert session_service.load_token(token) is None
    finally:
        app.config["SECRET_KEY"] = original


def test_expired_token_is_rejected(app, regular_user):
    token = session_service.issue_token(regular_user)
    original = app.config["SESSION_MAX_AGE_SECONDS"]
    app.config["SESSION_MAX_AGE_SECONDS"] = -1
    try:
        assert session_service.load_token(token) is None
    finally:
        app.config["SESSION_MAX_AGE_SECONDS"] = original


def test_garbage_and_empty_tokens(app):
    assert session_service.load_token(None) is None
    assert session_service.load_token("") is None
    assert session_service.load_token("not.a.token") is None


def test_permissions_are_a_snapshot(regular_user):
    token = session_service.issue_token(regular_user)

    role = permission_service.get_role_by_name("User")
    permission_service.grant_permission(role, M.REPORTS, A.READ)

    assert not session_service.load_token(token).has_permission(M.REPORTS, A.READ)
    fresh = session_service.load_token(session_service.issue_token(regular_user))
    assert fresh.has_permission(M.REPORTS, A.READ)


def test_default_lifetime_is_eight_hours(app):
    assert session_service.max_age_seconds() == 8 * 60 * 60
