from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from lotengo.auth_service import public_user
from lotengo.errors import AuthError, NotFoundError
from lotengo.marketplace import marketplace
from lotengo.routes._deps import current_user_id, trace_id_from_request
from lotengo.schemas import (
    ChangePasswordRequest,
    LocationIn,
    LoginRequest,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    PasswordResetVerifyRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    success_envelope,
)
from lotengo.security import issue_token

router = APIRouter(prefix="/api/v1", tags=["auth"])


@router.post("/auth/register")
def register(payload: RegisterRequest, request: Request):
    user = marketplace.auth.register(**payload.model_dump())
    return JSONResponse(status_code=201, content=success_envelope(public_user(user), trace_id_from_request(request)))


@router.post("/auth/login")
def login(payload: LoginRequest, request: Request):
    user = marketplace.auth.login(payload.email, payload.password)
    if user is None:
        raise AuthError("invalid email or password")
    marketplace.session.set_user(user)
    data: dict[str, object] = {"user": public_user(user)}
    security_cfg = request.app.state.security_cfg
    if security_cfg.enabled:
        data["access_token"] = issue_token(user_id=user["id"], role=user["role"], cfg=security_cfg)
        data["token_type"] = "bearer"
    return success_envelope(data, trace_id_from_request(request))


@router.post("/auth/logout")
def logout(request: Request):
    marketplace.session.clear()
    return success_envelope({"logged_out": True}, trace_id_from_request(request))


@router.post("/auth/password-reset")
def request_password_reset(payload: PasswordResetRequest, request: Request):
    # The code is handed back directly: delivery (SMS/email) is not part of this service.
    otp = marketplace.auth.request_password_reset(payload.email)
    return success_envelope({"email": payload.email, "otp_code": otp}, trace_id_from_request(request))


@router.post("/auth/password-reset/verify")
def verify_password_reset(payload: PasswordResetVerifyRequest, request: Request):
    valid = marketplace.auth.verify_otp(payload.email, payload.code)
    return success_envelope({"valid": valid}, trace_id_from_request(request))


@router.post("/auth/password-reset/confirm")
def confirm_password_reset(payload: PasswordResetConfirmRequest, request: Request):
    marketplace.auth.reset_password(payload.email, payload.code, payload.new_password)
    return success_envelope({"reset": True}, trace_id_from_request(request))


@router.post("/auth/change-password")
def change_password(payload: ChangePasswordRequest, request: Request):
    marketplace.auth.change_password(current_user_id(request), payload.current_password, payload.new_password)
    return success_envelope({"changed": True}, trace_id_from_request(request))


@router.get("/users/me")
def get_me(request: Request):
    user = marketplace.auth.require_user(current_user_id(request))
    return success_envelope(public_user(user), trace_id_from_request(request))


@router.put("/users/me")
def update_me(payload: ProfileUpdateRequest, request: Request):
    user = marketplace.auth.update_profile(current_user_id(request), payload.model_dump(exclude_unset=True))
    marketplace.session.update_user(public_user(user))
    return success_envelope(public_user(user), trace_id_from_request(request))


@router.post("/users/me/frequent-addresses")
def save_frequent_address(payload: LocationIn, request: Request):
    addresses = marketplace.auth.save_frequent_address(current_user_id(request), payload.model_dump(exclude_none=True))
    return success_envelope({"items": addresses, "total": len(addresses)}, trace_id_from_request(request))


@router.get("/users/{user_id}")
def get_user(user_id: str, request: Request):
    user = marketplace.auth.get_user_by_id(user_id)
    if user is None:
        raise NotFoundError(code="USER_NOT_FOUND", message="user not found")
    return success_envelope(public_user(user), trace_id_from_request(request))
