from __future__ import annotations

from ..extensions import db
from erp.time_utils import to_utc_z


class Department(db.Model):
    """Organizational unit a user can belong to."""
    __tablename__ = "departments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
        }


class Role(db.Model):
    """
    A named bundle of (module, action) permissions.

    Roles are seeded once and rarely change. A role cannot be deleted while
    users still reference it.
    """
    __tablename__ = "roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True, index=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    permissions = db.relationship(
        "Permission",
        backref="role",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Permission.id",
    )

    def permission_pairs(self) -> list[tuple[str, str]]:
        return [(p.module, p.action) for p in self.permissions]

    def to_dict(self, include_permissions: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }
        if include_permissions:
            data["permissions"] = [p.to_dict() for p in self.permissions]
        return data


class Permission(db.Model):
    """
    One (module, action) grant owned by a role.

    DESIGN: the pair is the whole key. There is no global permission
    catalogue; the vocabulary is fixed in erp.permissions.categories.
    """
    __tablename__ = "permissions"
    __table_args__ = (
        db.UniqueConstraint("role_id", "module", "action", name="uq_permissions_role_module_action"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=False, index=True)
    module = db.Column(db.String(32), nullable=False)
    action = db.Column(db.String(16), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role_id": self.role_id,
            "module": self.module,
            "action": self.action,
        }


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Email is globally unique and stored lower-cased. A user has at most one
    role; its permissions are snapshotted into the session token at login.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    # active / inactive
    status = db.Column(db.String(16), nullable=False, default="active")

    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=True, index=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    role = db.relationship("Role", backref=db.backref("users", lazy=True))
    department = db.relationship("Department", backref=db.backref("users", lazy=True))

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "status": self.status,
            "role": {"id": self.role.id, "name": self.role.name} if self.role else None,
            "department": {"id": self.department.id, "name": self.department.name} if self.department else None,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class LoginThrottle(db.Model):
    """
    Shared lockout state for the database-backed login throttle.

    One row per normalized email. Used only when LOGIN_THROTTLE_BACKEND is
    "database"; the default in-memory store never touches this table.
    """
    __tablename__ = "login_throttles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    failure_count = db.Column(db.Integer, nullable=False, default=0)
    window_started_at = db.Column(db.DateTime(timezone=True), nullable=False)
    locked_until = db.Column(db.DateTime(timezone=True), nullable=True)
