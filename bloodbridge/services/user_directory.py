"""
User Directory — user records keyed by email; source of role and status.
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from bloodbridge.errors import NotFound, ValidationError
from bloodbridge.models.user import BLOOD_GROUPS, ROLES, USER_STATUSES, User
from bloodbridge.services.common import (
    normalize_email, optional_string, parse_id, pick_fields, require_fields, validate_choice,
    validate_email,
)

REGISTRATION_FIELDS = ("name", "email", "bloodGroup", "district", "upazila")
PROFILE_FIELDS = {
    "name": "name",
    "bloodGroup": "blood_group",
    "district": "district",
    "upazila": "upazila",
    "avatar": "avatar",
}


class UserDirectory:
    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    def register(self, data):
        """
        Create a user with role=donor, status=active.
        Raises ValidationError on missing fields or an email already on file.
        """
        require_fields(data, REGISTRATION_FIELDS)
        email = normalize_email(data["email"])
        validate_email(email)
        validate_choice(data["bloodGroup"], BLOOD_GROUPS, "bloodGroup")

        if self.find_by_email(email):
            raise ValidationError("Email already exists")

        user = User(
            name=data["name"].strip(),
            email=email,
            blood_group=data["bloodGroup"],
            district=data["district"].strip(),
            upazila=data["upazila"].strip(),
            avatar=optional_string(data, "avatar"),
            role="donor",
            status="active",
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            # unique index on email lost a race with a concurrent registration
            self.session.rollback()
            raise ValidationError("Email already exists")
        return user

    def find_by_email(self, email):
        return self.session.execute(
            select(User).filter_by(email=normalize_email(email))
        ).scalar_one_or_none()

    def get_by_email(self, email):
        user = self.find_by_email(email)
        if not user:
            raise NotFound("User not found")
        return user

    def get(self, user_id):
        user = self.session.get(User, parse_id(user_id, "User not found"))
        if not user:
            raise NotFound("User not found")
        return user

    def update_profile(self, user, data):
        changes = pick_fields(data, PROFILE_FIELDS)
        if not changes:
            raise ValidationError(
                f"Provide at least one of: {', '.join(PROFILE_FIELDS)}"
            )
        if "bloodGroup" in changes:
            validate_choice(changes["bloodGroup"], BLOOD_GROUPS, "bloodGroup")

        for key, value in changes.items():
            setattr(user, PROFILE_FIELDS[key], value.strip() if isinstance(value, str) else value)
        self.session.commit()
        return user

    def set_role(self, user_id, role):
        validate_choice(role, ROLES, "role")
        user = self.get(user_id)
        user.role = role
        self.session.commit()
        return user

    def set_status(self, user_id, status):
        validate_choice(status, USER_STATUSES, "status")
        user = self.get(user_id)
        user.status = status
        self.session.commit()
        return user

    def list_users(self, status=None, page=1, limit=10):
        stmt = select(User).order_by(User.created_at, User.user_id)
        if status:
            validate_choice(status, USER_STATUSES, "status")
            stmt = stmt.filter_by(status=status)
        return self.db.paginate(stmt, page=page, per_page=limit, error_out=False)

    def search_donors(self, blood_group=None, district=None, upazila=None):
        """Active donors, optionally narrowed by exact blood group / location."""
        filters = {"role": "donor", "status": "active"}
        if blood_group:
            filters["blood_group"] = blood_group
        if district:
            filters["district"] = district
        if upazila:
            filters["upazila"] = upazila
        return self.session.execute(select(User).filter_by(**filters)).scalars().all()

    def count(self, **filters):
        stmt = select(func.count()).select_from(User).where(
            *(getattr(User, key) == value for key, value in filters.items())
        )
        return self.session.execute(stmt).scalar_one()
