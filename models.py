"""
models.py
Domain types (roles, users, members, auth state, API envelope, form data).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: Any, default: "Role | None" = None) -> "Role":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return default or cls.USER


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, value: Any, default: "Gender | None" = None) -> "Gender":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return default or cls.MALE


# camelCase keys used by the persisted user snapshot
_USER_KEYS = {
    "id": "id",
    "uuid": "uuid",
    "email": "email",
    "is_email_verified": "isEmailVerified",
    "is_detail_completed": "isDetailCompleted",
    "full_name": "fullName",
    "phone_number": "phoneNumber",
    "gender": "gender",
    "birth_date": "birthDate",
    "address": "address",
    "university": "university",
    "birth_place": "birthPlace",
    "initial_name": "initialName",
    "role": "role",
    "registration_date": "registrationDate",
}


@dataclass(frozen=True)
class User:
    id: str
    email: str
    uuid: str = ""
    is_email_verified: bool = False
    is_detail_completed: bool = False
    full_name: str = ""
    phone_number: str = ""
    gender: Gender = Gender.MALE
    birth_date: str = ""
    address: str = ""
    university: str = ""
    birth_place: str = ""
    initial_name: str = ""
    role: Role = Role.USER
    registration_date: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["gender"] = self.gender.value
        data["role"] = self.role.value
        return {_USER_KEYS[k]: v for k, v in data.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        """
        Build a User from its camelCase snapshot.
        Missing keys take the dataclass defaults; id and email are required.
        """
        kwargs: dict[str, Any] = {}
        for attr, key in _USER_KEYS.items():
            if key in data and data[key] is not None:
                kwargs[attr] = data[key]
        if "id" not in kwargs or "email" not in kwargs:
            raise ValueError("user snapshot requires id and email")
        kwargs["id"] = str(kwargs["id"])
        kwargs["gender"] = Gender.parse(kwargs.get("gender", Gender.MALE))
        kwargs["role"] = Role.parse(kwargs.get("role", Role.USER))
        return cls(**kwargs)


def is_admin(user: User | None) -> bool:
    return user is not None and user.role is Role.ADMIN


@dataclass(frozen=True)
class Member:
    id: str
    full_name: str
    email: str
    phone_number: str
    gender: Gender
    birth_date: str
    address: str
    registration_date: str


@dataclass(frozen=True)
class Account:
    """Identity block returned by /auth/login, /auth/register and /user/me."""

    id: str
    email: str
    uuid: str = ""
    is_email_verified: bool = False
    is_detail_completed: bool = False
    role: Role | None = None


@dataclass(frozen=True)
class UserDetails:
    """Profile block of /user/me. None means the backend did not send the field."""

    full_name: str | None = None
    phone_number: str | None = None
    university: str | None = None
    initial_name: str | None = None
    gender: Gender | None = None
    birth_date: str | None = None
    address: str | None = None
    birth_place: str | None = None


@dataclass(frozen=True)
class LoginResult:
    account: Account
    token: str


@dataclass(frozen=True)
class CurrentUser:
    account: Account
    details: UserDetails


@dataclass
class AuthState:
    is_authenticated: bool = False
    user: User | None = None
    loading: bool = False
    error: str | None = None


@dataclass(frozen=True)
class ApiResponse:
    """
    Normalized response envelope.
    status is "success" (data set) or "error" (message and optional errors bag).
    """

    status: str
    data: Any = None
    message: str | None = None
    errors: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, data: Any, message: str | None = None) -> "ApiResponse":
        return cls(status="success", data=data, message=message)

    @classmethod
    def error(cls, message: str, errors: dict[str, Any] | None = None) -> "ApiResponse":
        return cls(status="error", message=message, errors=errors)


# ---------- Form data ----------

@dataclass
class LoginFormData:
    email: str = ""
    password: str = ""


@dataclass
class RegisterFormData:
    full_name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    phone_number: str = ""
    gender: str = ""
    birth_date: str = ""
    address: str = ""


@dataclass
class MemberFormData:
    """Shared by the add-member and profile forms."""

    full_name: str = ""
    email: str = ""
    phone_number: str = ""
    gender: str = ""
    birth_date: str = ""
    address: str = ""


FormErrors = dict[str, str]
