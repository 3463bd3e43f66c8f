"""
User Model — User Directory
Role: donor | volunteer | admin
Status: active | blocked
"""

import uuid
from datetime import datetime, timezone
from bloodbridge.extensions import db

ROLES = ("donor", "volunteer", "admin")
USER_STATUSES = ("active", "blocked")
BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    blood_group = db.Column(db.String(3), nullable=False)
    district = db.Column(db.String(120), nullable=False)
    upazila = db.Column(db.String(120), nullable=False)
    avatar = db.Column(db.Text)
    role = db.Column(
        db.Enum(*ROLES, name="user_role"),
        nullable=False,
        default="donor"
    )
    status = db.Column(
        db.Enum(*USER_STATUSES, name="user_status"),
        nullable=False,
        default="active"
    )
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    @property
    def is_blocked(self):
        return self.status == "blocked"

    def to_dict(self):
        return {
            "id":         str(self.user_id),
            "name":       self.name,
            "email":      self.email,
            "bloodGroup": self.blood_group,
            "district":   self.district,
            "upazila":    self.upazila,
            "avatar":     self.avatar,
            "role":       self.role,
            "status":     self.status,
            "createdAt":  self.created_at.isoformat() if self.created_at else None,
        }
