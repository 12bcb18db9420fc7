"""
Password policy, hashing and user account rules.
"""

import bcrypt
import pytest

from erp.models import User
from erp.services import auth_service
from erp.services.auth_service import (
    PasswordValidationError,
    validate_password_strength,
    get_bcrypt_cost,
)
from erp.validation import ConflictError, ValidationError


class TestPasswordPolicy:

    def test_weak_password_fails(self):
        result = validate_password_strength("abc12345")
        assert not result.valid

    def test_strong_password_passes(self):
        result = validate_password_strength("Abc123!@")
        assert result.valid
        assert result.message is None

    @pytest.mark.parametrize(
        "password,message",
        [
            ("Ab1!", "Password must be at least 8 characters"),
            ("abc12345!", "Password must include an uppercase letter"),
            ("ABC12345!", "Password must include a lowercase letter"),
            ("Abcdefgh!", "Password must include a number"),
            ("Abc12345", "Password must include a symbol"),
            ("Admin@123", "Password is too common"),
        ],
    )
    def test_first_failing_rule_is_reported(self, password, message):
        assert validate_password_strength(password).message == message

    def test_banned_check_is_case_insensitive(self):
        assert validate_password_strength("Welcome@123").message == "Password is too common"

    @pytest.mark.parametrize("password", [12345678, ["Abc123!@"], b"Abc123!@"])
    def test_non_string_password_fails(self, password):
        result = validate_password_strength(password)
        assert not result.valid
        assert result.message == "Password must be a string"

    def test_hash_password_enforces_policy(self, app):
        with pytest.raises(PasswordValidationError):
            auth_service.hash_password("abc12345")


class TestBcryptCost:

    @pytest.mark.parametrize(
        "configured,expected",
        [(4, 10), (10, 10), (12, 12), (14, 14), (31, 14), ("11", 11), ("fast", 12), (None, 12)],
    )
    def test_cost_is_clamped(self, app, configured, expected):
        original = app.config["BCRYPT_COST"]
        app.config["BCRYPT_COST"] = configured
        try:
            assert get_bcrypt_cost() == expected
        finally:
            app.config["BCRYPT_COST"] = original

    def test_hash_uses_configured_cost(self, app):
        hashed = auth_service.hash_password("Abc123!@")
        assert hashed.startswith("$2b$10$")
        assert bcrypt.checkpw(b"Abc123!@", hashed.encode())

    def test_verify_rejects_malformed_hash(self):
        assert auth_service.verify_password("Abc123!@", "not-a-bcrypt-hash") is False


class TestUsers:

    def test_create_user_normalizes_email(self, setup_roles):
        user = auth_service.create_user(
            email="  Jane.Doe@Example.COM ",
            password="Abc123!@",
            full_name="Jane Doe",
            role_name="User",
        )
        assert user.email == "jane.doe@example.com"
        assert user.role.name == "User"

    def test_duplicate_email_conflicts(self, regular_user):
        with pytest.raises(ConflictError, match="Email is already registered"):
            auth_service.create_user(email="USER@test.local", password="Abc123!@", full_name="Dup")

    def test_unknown_role_is_rejected(self, setup_roles):
        with pytest.raises(ValidationError):
            auth_service.create_user(
                email="x@test.local", password="Abc123!@", full_name="X", role_name="Nope"
            )

    def test_authenticate(self, regular_user):
        assert auth_service.authenticate("user@test.local", "Password123!").id == regular_user.id
        assert regular_user.last_login_at is not None
        assert auth_service.authenticate("user@test.local", "wrong") is None
        assert auth_service.authenticate("nobody@test.local", "Password123!") is None

    def test_inactive_user_cannot_authenticate(self, regular_user):
        auth_service.update_user(regular_user.id, {"status": "inactive"})
        assert auth_service.authenticate("user@test.local", "Password123!") is None

    def test_register_assigns_default_role(self, db_session):
        user = auth_service.register_user(email="new@test.local", password="Abc123!@", full_name="New")
        assert user.role.name == "User"
        assert user.role.permission_pairs()

    @pytest.mark.parametrize("email", [["new@test.local"], 42])
    def test_non_string_email_is_a_validation_error(self, db_session, email):
        with pytest.raises(ValidationError, match="Email must be a string"):
            auth_service.register_user(email=email, password="Abc123!@", full_name="New")
        assert db_session.query(User).count() == 0

    def test_non_string_password_never_authenticates(self, regular_user):
        assert auth_service.authenticate("user@test.local", 12345678) is None

    def test_password_reset_enforces_policy(self, regular_user):
        with pytest.raises(PasswordValidationError):
            auth_service.update_user(regular_user.id, {"password": "weak"})

        auth_service.update_user(regular_user.id, {"password": "N3w-Secret"})
        assert auth_service.authenticate("user@test.local", "N3w-Secret") is not None

    def test_cannot_delete_self(self, admin_user):
        with pytest.raises(ValidationError, match="You cannot delete your own account"):
            auth_service.delete_user(admin_user.id, acting_user_id=admin_user.id)

    def test_delete_other_user(self, admin_user, regular_user, db_session):
        auth_service.delete_user(regular_user.id, acting_user_id=admin_user.id)
        assert db_session.query(User).filter_by(email="user@test.local").first() is None


class TestBootstrapAdmin:

    def test_creates_admin(self, db_session):
        user, outcome = auth_service.bootstrap_admin(email="root@test.local", password="Abc123!@")
        assert outcome == "created"
        assert user.role.name == "Admin"

    def test_existing_admin_is_kept_without_reset(self, admin_user):
        user, outcome = auth_service.bootstrap_admin(email="admin@test.local", password="Abc123!@")
        assert outcome == "skipped_exists"
        assert user.id == admin_user.id

    def test_reset_updates_same_admin(self, admin_user):
        _, outcome = auth_service.bootstrap_admin(
            email="admin@test.local", password="Changed1!", allow_reset=True
        )
        assert outcome == "updated"
        assert auth_service.authenticate("admin@test.local", "Changed1!") is not None

    def test_other_admin_needs_force(self, admin_user):
        _, outcome = auth_service.bootstrap_admin(
            email="second@test.local", password="Abc123!@", allow_reset=True
        )
        assert outcome == "skipped_other_admin"

        user, outcome = auth_service.bootstrap_admin(
            email="second@test.local", password="Abc123!@", allow_reset=True, force=True
        )
        assert outcome == "created"
        assert user.role.name == "Admin"

    def test_weak_password_is_rejected(self, db_session):
        with pytest.raises(PasswordValidationError):
            auth_service.bootstrap_admin(email="root@test.local", password="password")
