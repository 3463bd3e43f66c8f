"""
Access Policy — decides whether a verified identity may perform an operation.

The caller's role and status are always re-read from the User Directory;
nothing but the verified email is trusted from the credential.
"""

from bloodbridge.errors import Forbidden

VIEW_PROFILE = "view_profile"
UPDATE_PROFILE = "update_profile"
CREATE_REQUEST = "create_request"
MANAGE_OWN_REQUESTS = "manage_own_requests"
LIST_ALL_REQUESTS = "list_all_requests"
OVERRIDE_REQUEST_STATUS = "override_request_status"
VIEW_STATS = "view_stats"
MANAGE_USERS = "manage_users"

ALL_ROLES = frozenset({"donor", "volunteer", "admin"})
STAFF_ROLES = frozenset({"volunteer", "admin"})

CAPABILITY_ROLES = {
    VIEW_PROFILE: ALL_ROLES,
    UPDATE_PROFILE: ALL_ROLES,
    CREATE_REQUEST: ALL_ROLES,
    MANAGE_OWN_REQUESTS: ALL_ROLES,
    LIST_ALL_REQUESTS: STAFF_ROLES,
    OVERRIDE_REQUEST_STATUS: STAFF_ROLES,
    VIEW_STATS: STAFF_ROLES,
    MANAGE_USERS: frozenset({"admin"}),
}

# capabilities a blocked account loses
REQUIRES_ACTIVE = frozenset({CREATE_REQUEST})


class AccessPolicy:
    def __init__(self, directory):
        self.directory = directory

    def resolve(self, identity):
        """Stored user for a verified identity; NotFound if never registered."""
        return self.directory.get_by_email(identity.email)

    def authorize(self, identity, capability):
        if capability not in CAPABILITY_ROLES:
            raise ValueError(f"Unknown capability: {capability}")

        user = self.resolve(identity)
        if user.role not in CAPABILITY_ROLES[capability]:
            raise Forbidden("Forbidden access")
        if capability in REQUIRES_ACTIVE and user.is_blocked:
            raise Forbidden("Blocked users cannot create donation requests")
        return user

    @staticmethod
    def check_owner(user, donation_request):
        """Edit/delete: the requester or an admin, at any status."""
        if user.role == "admin":
            return
        if donation_request.requester_email != user.email:
            raise Forbidden("Only the requester or an admin can modify this request")
