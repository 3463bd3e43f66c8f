import unittest
import uuid

from flask_jwt_extended import create_access_token

from bloodbridge.app import create_app
from bloodbridge.config import TestConfig
from bloodbridge.extensions import db
from bloodbridge.models import User


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app(TestConfig)
        self.client = self.app.test_client()

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()

    # --- helpers --------------------------------------------------------

    def token_for(self, email):
        with self.app.app_context():
            return create_access_token(identity=email)

    def auth(self, email):
        return {"Authorization": f"Bearer {self.token_for(email)}"}

    def register(self, email=None, name="Test User", blood_group="O+",
                 district="Dhaka", upazila="Savar", expected=201):
        email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
        resp = self.client.post("/register-user", json={
            "name": name,
            "email": email,
            "bloodGroup": blood_group,
            "district": district,
            "upazila": upazila,
        })
        self.assertEqual(resp.status_code, expected, resp.get_json())
        return email

    def set_user(self, email, **fields):
        """Change stored role/status directly, bypassing the API."""
        with self.app.app_context():
            user = db.session.execute(
                db.select(User).filter_by(email=email)
            ).scalar_one()
            for key, value in fields.items():
                setattr(user, key, value)
            db.session.commit()

    def request_body(self, **overrides):
        body = {
            "recipientName": "Rahim",
            "recipientDistrict": "Dhaka",
            "recipientUpazila": "Savar",
            "hospitalName": "Dhaka Medical College Hospital",
            "address": "Secretariat Rd, Dhaka",
            "bloodGroup": "O+",
            "donationDate": "2026-11-02",
            "donationTime": "10:30",
            "message": "Urgent, surgery scheduled",
        }
        body.update(overrides)
        return body

    def create_request(self, email, **overrides):
        resp = self.client.post(
            "/donation-requests", json=self.request_body(**overrides), headers=self.auth(email)
        )
        self.assertEqual(resp.status_code, 201, resp.get_json())
        return resp.get_json()["data"]
