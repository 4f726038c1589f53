# Overview: Pytest coverage for signup, login, OTP and session tokens.

import pytest

from agriferti.extensions import db
from agriferti.models import OtpCode, SessionToken
from agriferti.services import auth_service, otp_service, session_service

from conftest import auth_headers, build_app


PASSWORD = "Password123!"


def _signup(client, email="farmer@agri.test", phone="98765 43210", password=PASSWORD):
    return client.post("/api/auth/signup", json={
        "email": email,
        "phone_number": phone,
        "password": password,
        "confirm_password": password,
    })


@pytest.fixture
def otp_app():
    app = build_app("memory", OTP_ECHO_ENABLED=True)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


class TestPasswordAuth:

    def test_signup_returns_working_token(self, client):
        response = _signup(client)

        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert body["user"]["email"] == "farmer@agri.test"
        assert body["user_id"] == body["user"]["id"]

        me = client.get("/api/auth/me", headers=auth_headers(body["token"]))
        assert me.status_code == 200
        assert me.get_json()["user"]["id"] == body["user_id"]

    def test_signup_password_mismatch(self, client):
        response = client.post("/api/auth/signup", json={
            "email": "farmer@agri.test", "password": PASSWORD, "confirm_password": "Other123!",
        })

        assert response.status_code == 400
        assert response.get_json()["error"] == "Passwords do not match"

    def test_signup_weak_password(self, client):
        response = _signup(client, password="password")

        assert response.status_code == 400
        assert "uppercase" in response.get_json()["error"]

    def test_duplicate_signup_rejected(self, client):
        _signup(client)
        response = _signup(client)

        assert response.status_code == 400
        assert response.get_json()["error"] == "User already exists. Please login."

    def test_login_by_email_and_phone(self, client):
        _signup(client)

        by_email = client.post("/api/auth/login", json={"email": "FARMER@agri.test", "password": PASSWORD})
        by_phone = client.post("/api/auth/login", json={"phone_number": "9876543210", "password": PASSWORD})

        assert by_email.status_code == 200
        assert by_phone.status_code == 200
        assert by_email.get_json()["user_id"] == by_phone.get_json()["user_id"]

    @pytest.mark.parametrize("body", [
        {"email": "farmer@agri.test", "password": "Wrong123!"},
        {"email": "nobody@agri.test", "password": PASSWORD},
    ])
    def test_login_failures_look_the_same(self, client, body):
        _signup(client)

        response = client.post("/api/auth/login", json=body)

        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid credentials"

    def test_check_user(self, client):
        _signup(client)

        assert client.post("/api/auth/check-user", json={"email": "farmer@agri.test"}).get_json() == {"exists": True}
        assert client.post("/api/auth/check-user", json={"email": "new@agri.test"}).get_json() == {"exists": False}

    @pytest.mark.parametrize("body", [["farmer@agri.test"], "farmer@agri.test", 42])
    def test_check_user_rejects_non_object_body(self, client, body):
        response = client.post("/api/auth/check-user", json=body)

        assert response.status_code == 400
        assert response.get_json() == {"error": "Invalid JSON payload", "kind": "validation_error"}

    def test_logout_revokes_token(self, client):
        token = _signup(client).get_json()["token"]

        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_each_user_gets_own_partition(self, client):
        first = _signup(client).get_json()
        second = _signup(client, email="other@agri.test", phone="9123456780").get_json()

        assert first["user_id"] != second["user_id"]

        client.post("/api/products", json={
            "name": "Urea", "category": "Nitrogen", "unit": "bag",
            "purchase_price": 1, "selling_price": 2, "stock": 1,
        }, headers=auth_headers(first["token"]))

        listed = client.get("/api/products", headers=auth_headers(second["token"])).get_json()
        assert listed == []


class TestSessions:

    def test_token_stored_hashed(self, app, owner_a):
        session = db.session.query(SessionToken).filter_by(user_id=owner_a.user_id).first()

        assert session.token_hash != owner_a.token
        assert session.token_hash == session_service.hash_token(owner_a.token)

    def test_expired_session_rejected(self, app, owner_a):
        session = db.session.query(SessionToken).filter_by(user_id=owner_a.user_id).first()
        session.expires_at = session.created_at
        db.session.commit()

        assert session_service.validate_session(owner_a.token) is None

    def test_inactive_user_rejected(self, app, owner_a):
        context = session_service.validate_session(owner_a.token)
        assert context.owner_id == owner_a.owner_id

        context.user.is_active = False
        db.session.commit()

        assert session_service.validate_session(owner_a.token) is None


class TestOtpLogin:

    def test_send_and_verify(self, otp_app):
        client = otp_app.test_client()

        sent = client.post("/api/auth/send-otp", json={"phone_number": "9876543210"}).get_json()
        assert sent["success"] is True

        response = client.post("/api/auth/verify-otp", json={"phone_number": "9876543210", "otp": sent["otp"]})

        assert response.status_code == 200
        body = response.get_json()
        assert body["user"]["phone_number"] == "9876543210"
        assert client.get("/api/auth/me", headers=auth_headers(body["token"])).status_code == 200

    def test_code_not_echoed_by_default(self, client):
        body = client.post("/api/auth/send-otp", json={"phone_number": "9876543210"}).get_json()
        assert "otp" not in body

    def test_code_is_single_use(self, otp_app):
        client = otp_app.test_client()
        code = client.post("/api/auth/send-otp", json={"phone_number": "9876543210"}).get_json()["otp"]

        assert client.post("/api/auth/verify-otp", json={"phone_number": "9876543210", "otp": code}).status_code == 200
        assert client.post("/api/auth/verify-otp", json={"phone_number": "9876543210", "otp": code}).status_code == 401

    def test_wrong_code_rejected(self, otp_app):
        client = otp_app.test_client()
        client.post("/api/auth/send-otp", json={"phone_number": "9876543210"})

        response = client.post("/api/auth/verify-otp", json={"phone_number": "9876543210", "otp": "000000"})

        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid or expired OTP"

    def test_lockout_after_max_attempts(self, otp_app):
        code = otp_service.issue_otp("9876543210")
        for _ in range(otp_app.config["OTP_MAX_ATTEMPTS"]):
            assert otp_service.verify_otp("9876543210", "000000") is False

        assert otp_service.verify_otp("9876543210", code) is False

    def test_new_code_replaces_old(self, otp_app):
        otp_service.issue_otp("9876543210")
        second = otp_service.issue_otp("9876543210")

        live = db.session.query(OtpCode).filter(OtpCode.consumed_at.is_(None)).all()
        assert len(live) == 1
        assert otp_service.verify_otp("9876543210", second) is True

    def test_codes_stored_hashed(self, otp_app):
        code = otp_service.issue_otp("9876543210")

        stored = db.session.query(OtpCode).one()
        assert stored.code_hash != code

    def test_phone_login_reuses_existing_user(self, otp_app):
        first = auth_service.get_or_create_phone_user("9876543210")
        second = auth_service.get_or_create_phone_user("(98765) 43210")

        assert first.id == second.id

    def test_short_phone_rejected(self, otp_app):
        response = otp_app.test_client().post("/api/auth/send-otp", json={"phone_number": "12345"})

        assert response.status_code == 400
