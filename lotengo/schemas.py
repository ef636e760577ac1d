from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

EtaUnit = Literal["min", "hours", "days"]


class LocationIn(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str | None = None


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    phone: str = ""
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    role: Literal["buyer", "seller"]
    department: str | None = None
    city: str | None = None
    address: str | None = None
    business_name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetVerifyRequest(BaseModel):
    email: str
    code: str


class PasswordResetConfirmRequest(BaseModel):
    email: str
    code: str
    new_password: str = Field(min_length=6)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    department: str | None = None
    city: str | None = None
    address: str | None = None
    business_name: str | None = None
    location: LocationIn | None = None


class RequestCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    location: LocationIn
    description: str | None = None
    quantity: float | None = Field(default=None, gt=0)
    unit: str | None = None
    notes: str | None = None
    category: str | None = None


class RequestStatusUpdateRequest(BaseModel):
    status: Literal["OPEN", "NEGOTIATING", "CLOSED", "ACCEPTED", "CANCELLED"]


class OfferCreateRequest(BaseModel):
    request_id: str
    price: float = Field(gt=0)
    eta_value: float = Field(gt=0)
    eta_unit: EtaUnit
    notes: str | None = None
    attachments: list[str] = Field(default_factory=list)


class MessageSendRequest(BaseModel):
    type: Literal["text", "image", "file"] = "text"
    text: str | None = None
    uri: str | None = None
    file_name: str | None = None


class RatingCreateRequest(BaseModel):
    request_id: str
    to_user_id: str
    stars: int = Field(ge=1, le=5)
    comment: str | None = None


class ProductCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    price_base: float | None = Field(default=None, ge=0)
    eta_value: float | None = Field(default=None, gt=0)
    eta_unit: EtaUnit | None = None
    notes: str | None = None
    conditions: str | None = None
    images: list[str] = Field(default_factory=list)


class ProductUpdateRequest(BaseModel):
    name: str | None = None
    category: str | None = None
    price_base: float | None = Field(default=None, ge=0)
    eta_value: float | None = Field(default=None, gt=0)
    eta_unit: EtaUnit | None = None
    notes: str | None = None
    conditions: str | None = None
    images: list[str] | None = None


def success_envelope(data: Any, trace_id: str, message: str = "ok") -> dict[str, Any]:
    return {
        "success": True,
        "data": data,
        "message": message,
        "meta": {
            "trace_id": trace_id,
        },
    }


def error_envelope(
    *,
    code: str,
    message: str,
    error_class: str,
    retryable: bool,
    trace_id: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "retryable": retryable,
        "class": error_class,
    }
    if details is not None:
        error["details"] = details
    return {
        "success": False,
        "error": error,
        "meta": {
            "trace_id": trace_id,
        },
    }
