import unittest
from datetime import timedelta
from types import SimpleNamespace
from unittest import mock

from flask_jwt_extended import create_access_token, create_refresh_token

from bloodbridge.app import create_app
from bloodbridge.config import TestConfig
from bloodbridge.errors import Forbidden, NotFound, StoreUnavailable, Unauthenticated, ValidationError
from bloodbridge.extensions import db
from bloodbridge.services import get_services
from bloodbridge.services import access_policy
from bloodbridge.services.identity import (
    FirebaseTokenVerifier, Identity, JwtTokenVerifier, bearer_token, build_verifier, firebase_auth,
)
from tests.base import ApiTestCase


class TestRequestLedger(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.register("a@x.com", name="A")
        self.rid = self.create_request("a@x.com")["id"]
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.ledger = get_services().ledger

    def tearDown(self):
        self.ctx.pop()
        super().tearDown()

    def test_claim_after_stale_read(self):
        # both callers saw 'pending' before either wrote
        seen_by_b = self.ledger.get(self.rid).status
        seen_by_c = self.ledger.get(self.rid).status
        self.assertEqual((seen_by_b, seen_by_c), ("pending", "pending"))

        claimed = self.ledger.claim(self.rid, "B", "b@x.com")
        self.assertEqual(claimed.status, "inprogress")
        with self.assertRaises(ValidationError):
            self.ledger.claim(self.rid, "C", "c@x.com")

        self.assertEqual(self.ledger.get(self.rid).donor_email, "b@x.com")

    def test_complete_checks_owner_before_state(self):
        with self.assertRaises(Forbidden):
            self.ledger.complete(self.rid, "b@x.com", "done")
        with self.assertRaises(ValidationError):
            self.ledger.complete(self.rid, "a@x.com", "done")

    def test_status_counts(self):
        self.ledger.claim(self.rid, "B", "b@x.com")
        counts = self.ledger.status_counts()
        self.assertEqual(counts, {"pending": 0, "inprogress": 1, "done": 0, "canceled": 0})

    def test_get_unknown(self):
        with self.assertRaises(NotFound):
            self.ledger.get("00000000-0000-0000-0000-000000000000")


class TestAccessPolicy(unittest.TestCase):
    def setUp(self):
        self.users = {}
        directory = mock.Mock()

        def get_by_email(email):
            if email not in self.users:
                raise NotFound("User not found")
            return self.users[email]
        directory.get_by_email.side_effect = get_by_email
        self.policy = access_policy.AccessPolicy(directory)

    def add(self, email, role="donor", status="active"):
        user = SimpleNamespace(email=email, role=role, status=status, is_blocked=status == "blocked")
        self.users[email] = user
        return user

    def test_matrix(self):
        expectations = {
            "donor": {access_policy.CREATE_REQUEST, access_policy.MANAGE_OWN_REQUESTS,
                      access_policy.VIEW_PROFILE, access_policy.UPDATE_PROFILE},
            "volunteer": {access_policy.CREATE_REQUEST, access_policy.MANAGE_OWN_REQUESTS,
                          access_policy.VIEW_PROFILE, access_policy.UPDATE_PROFILE,
                          access_policy.LIST_ALL_REQUESTS, access_policy.OVERRIDE_REQUEST_STATUS,
                          access_policy.VIEW_STATS},
            "admin": set(access_policy.CAPABILITY_ROLES),
        }
        for role, allowed in expectations.items():
            email = f"{role}@x.com"
            self.add(email, role=role)
            for capability in access_policy.CAPABILITY_ROLES:
                if capability in allowed:
                    self.assertIs(self.policy.authorize(Identity(email), capability), self.users[email])
                else:
                    with self.assertRaises(Forbidden, msg=(role, capability)):
                        self.policy.authorize(Identity(email), capability)

    def test_blocked_admin_cannot_create(self):
        self.add("admin@x.com", role="admin", status="blocked")
        with self.assertRaises(Forbidden):
            self.policy.authorize(Identity("admin@x.com"), access_policy.CREATE_REQUEST)
        self.policy.authorize(Identity("admin@x.com"), access_policy.MANAGE_USERS)

    def test_unregistered(self):
        with self.assertRaises(NotFound):
            self.policy.authorize(Identity("ghost@x.com"), access_policy.VIEW_PROFILE)

    def test_check_owner(self):
        request = SimpleNamespace(requester_email="a@x.com")
        self.policy.check_owner(self.add("a@x.com"), request)
        self.policy.check_owner(self.add("root@x.com", role="admin"), request)
        with self.assertRaises(Forbidden):
            self.policy.check_owner(self.add("v@x.com", role="volunteer"), request)


class TestIdentity(unittest.TestCase):
    def setUp(self):
        self.app = create_app(TestConfig)
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.verifier = JwtTokenVerifier()

    def tearDown(self):
        db.engine.dispose()
        self.ctx.pop()

    def test_bearer_token(self):
        self.assertEqual(bearer_token("Bearer abc"), "abc")
        self.assertEqual(bearer_token("bearer abc"), "abc")
        for header in (None, "", "abc", "Basic abc", "Bearer", "Bearer a b"):
            with self.assertRaises(Unauthenticated, msg=header):
                bearer_token(header)

    def test_access_token(self):
        identity = self.verifier.verify(create_access_token(identity="A@X.com"))
        self.assertEqual(identity.email, "a@x.com")

    def test_refresh_token_rejected(self):
        with self.assertRaises(Unauthenticated):
            self.verifier.verify(create_refresh_token(identity="a@x.com"))

    def test_expired_token_rejected(self):
        token = create_access_token(identity="a@x.com", expires_delta=timedelta(seconds=-10))
        with self.assertRaises(Unauthenticated):
            self.verifier.verify(token)

    def test_identity_must_be_email(self):
        with self.assertRaises(Unauthenticated):
            self.verifier.verify(create_access_token(identity="user-42"))

    def test_unknown_provider(self):
        with self.assertRaises(ValueError):
            build_verifier({"AUTH_PROVIDER": "saml"})

    def test_firebase_verifier(self):
        with mock.patch("bloodbridge.services.identity.firebase_admin.get_app", return_value="app"):
            verifier = FirebaseTokenVerifier()

        with mock.patch.object(firebase_auth, "verify_id_token",
                               return_value={"email": "a@x.com", "uid": "u1"}) as verify:
            self.assertEqual(verifier.verify("id-token").email, "a@x.com")
            verify.assert_called_once_with("id-token", app="app")

        with mock.patch.object(firebase_auth, "verify_id_token",
                               side_effect=firebase_auth.InvalidIdTokenError("bad token")):
            with self.assertRaises(Unauthenticated):
                verifier.verify("id-token")


class TestApplication(ApiTestCase):
    def test_index(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_data(as_text=True), "Blood Bridge is donating blood")

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["status"], "healthy")

    def test_unknown_route_uses_envelope(self):
        resp = self.client.get("/nowhere")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json(), {"message": "Not found"})

    def test_unexpected_error_hides_detail(self):
        @self.app.route("/boom")
        def boom():
            raise RuntimeError("secret internals")

        with self.assertLogs(self.app.logger, level="ERROR"):
            resp = self.client.get("/boom")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.get_json(), {"message": "Server error"})

    def test_startup_fails_without_store(self):
        with self.assertRaises(StoreUnavailable):
            create_app(TestConfig, SQLALCHEMY_DATABASE_URI="sqlite:////nonexistent/dir/bloodbridge.db")


if __name__ == '__main__':
    unittest.main()
