# Overview: Flask API routes for authentication; issues and revokes session tokens.

"""
Authentication routes.

The token returned by signup, login and verify-otp is the only way to
establish an owner id for later requests.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import bearer_token, require_auth
from ..errors import UnauthorizedError, ValidationError
from ..services import auth_service, otp_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def _token_response(user, message: str, status: int = 200):
    _, token = session_service.create_session(user.id)
    return jsonify({
        "success": True,
        "message": message,
        "token": token,
        "user_id": user.public_id,
        "user": user.to_dict(),
    }), status


@auth_bp.post("/signup")
def signup_route():
    data = _payload()
    user = auth_service.signup(
        email=data.get("email"),
        phone_number=data.get("phone_number"),
        password=data.get("password"),
        confirm_password=data.get("confirm_password"),
    )
    return _token_response(user, "Signup successful", 201)


@auth_bp.post("/login")
def login_route():
    data = _payload()
    user = auth_service.authenticate(
        email=data.get("email"),
        phone_number=data.get("phone_number"),
        password=data.get("password"),
    )
    return _token_response(user, "Login successful")


@auth_bp.post("/check-user")
def check_user_route():
    data = _payload()
    exists = auth_service.user_exists(data.get("email"), data.get("phone_number"))
    return jsonify({"exists": exists}), 200


@auth_bp.post("/send-otp")
def send_otp_route():
    data = _payload()
    code = otp_service.issue_otp(data.get("phone_number"))

    body = {"success": True, "message": "OTP sent successfully"}
    if current_app.config.get("OTP_ECHO_ENABLED"):
        body["otp"] = code
    return jsonify(body), 200


@auth_bp.post("/verify-otp")
def verify_otp_route():
    data = _payload()
    phone_number = data.get("phone_number")
    if not otp_service.verify_otp(phone_number, data.get("otp")):
        raise UnauthorizedError("Invalid or expired OTP")

    user = auth_service.get_or_create_phone_user(phone_number)
    return _token_response(user, "Login successful")


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"success": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
