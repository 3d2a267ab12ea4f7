"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from imagehost.api.deps import (
    current_user_id,
    get_session_manager,
    json_response,
    require_auth,
    timing,
)
from imagehost.core.extensions import limiter
from imagehost.schemas import (
    AuthResultSchema,
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordSchema,
    TokenPairSchema,
    UserSchema,
)
from imagehost.services.auth.dto import (
    ChangePasswordIn,
    LoginIn,
    RegisterIn,
    ResetPasswordIn,
)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
forgot_schema = ForgotPasswordSchema()
reset_schema = ResetPasswordSchema()
change_password_schema = ChangePasswordSchema()
refresh_schema = RefreshTokenSchema()
auth_result_schema = AuthResultSchema()
token_pair_schema = TokenPairSchema()
user_schema = UserSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/register")
@timing
def register():
    """Create an account and return a token pair with the public user."""

    data = register_schema.load(_json_body())
    result = get_session_manager().register(RegisterIn(**data))
    body = {"message": "User registered successfully!", **auth_result_schema.dump(result)}
    return json_response(body)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue a fresh token pair."""

    data = login_schema.load(_json_body())
    result = get_session_manager().login(LoginIn(**data))
    body = {"message": "Logged In successfully!", **auth_result_schema.dump(result)}
    return json_response(body)


@bp.post("/forgot-password")
@timing
def forgot_password():
    """Start a password reset. Development builds echo the link back."""

    data = forgot_schema.load(_json_body())
    result = get_session_manager().forgot_password(data["email"])
    if current_app.config.get("EXPOSE_RESET_LINK"):
        return json_response(
            {
                "message": "Reset link logged in console (dev mode)",
                "resetLink": result.reset_link,
            }
        )
    return json_response({"message": "Password reset mail sent"})


@bp.post("/reset-password")
@timing
def reset_password():
    data = reset_schema.load(_json_body())
    get_session_manager().reset_password(
        ResetPasswordIn(token=data["token"], new_password=data["password"])
    )
    return json_response({"message": "Password reset successful!"})


@bp.post("/refresh-token")
@timing
def refresh_token():
    """Rotate the refresh token; the one presented stops working."""

    data = refresh_schema.load(_json_body())
    pair = get_session_manager().refresh_access_token(data["refresh_token"])
    return json_response(token_pair_schema.dump(pair))


@bp.post("/logout")
@require_auth
@timing
def logout():
    get_session_manager().logout(current_user_id())
    return json_response({"message": "Logged out successfully"})


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated user profile."""

    user = get_session_manager().get_profile(current_user_id())
    return json_response({"user": user_schema.dump(user)})


@bp.post("/change-password")
@require_auth
@timing
def change_password():
    data = change_password_schema.load(_json_body())
    get_session_manager().change_password(current_user_id(), ChangePasswordIn(**data))
    return json_response({"message": "Password changed successfully"})
