"""
api.py
REST client for the member backend (httpx).

Every operation returns an ApiResponse and never raises. The bearer token is
read from the session store on each request, and any HTTP 401 clears the
stored token and sends the UI back to the login page.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

import config
import db
from models import (
    Account,
    ApiResponse,
    CurrentUser,
    Gender,
    LoginFormData,
    LoginResult,
    Member,
    MemberFormData,
    RegisterFormData,
    Role,
    User,
    UserDetails,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again."
LOGIN_ROUTE = "login"


# ---------- Wire translation (snake_case JSON <-> models) ----------

def account_from_wire(data: dict[str, Any]) -> Account:
    role = data.get("role")
    return Account(
        id=str(data["id"]),
        email=data.get("email") or "",
        uuid=data.get("uuid") or "",
        is_email_verified=bool(data.get("is_email_verified", False)),
        is_detail_completed=bool(data.get("is_detail_completed", False)),
        role=Role.parse(role) if role else None,
    )


def details_from_wire(data: dict[str, Any] | None) -> UserDetails:
    data = data or {}
    gender = data.get("gender")
    return UserDetails(
        full_name=data.get("full_name"),
        phone_number=data.get("phone_number"),
        university=data.get("university"),
        initial_name=data.get("initial_name"),
        gender=Gender.parse(gender) if gender else None,
        birth_date=data.get("birth_date"),
        address=data.get("address"),
        birth_place=data.get("birth_place"),
    )


def member_from_wire(data: dict[str, Any]) -> Member:
    return Member(
        id=str(data["id"]),
        full_name=data.get("full_name") or "",
        email=data.get("email") or "",
        phone_number=data.get("phone_number") or "",
        gender=Gender.parse(data.get("gender")),
        birth_date=data.get("birth_date") or "",
        address=data.get("address") or "",
        registration_date=data.get("registration_date") or data.get("created_at") or "",
    )


def member_to_wire(data: MemberFormData) -> dict[str, Any]:
    return {
        "full_name": data.full_name.strip(),
        "email": data.email.strip(),
        "phone_number": data.phone_number.strip(),
        "gender": data.gender,
        "birth_date": data.birth_date,
        "address": data.address.strip(),
    }


def profile_to_wire(data: MemberFormData, user: User | None = None) -> dict[str, Any]:
    """PUT /user/me only accepts these four fields."""
    return {
        "initial_name": user.initial_name if user else "",
        "full_name": data.full_name.strip(),
        "university": user.university if user else "",
        "phone_number": data.phone_number.strip(),
    }


def _login_from_wire(data: dict[str, Any]) -> LoginResult:
    return LoginResult(account=account_from_wire(data["account"]), token=str(data["token"]))


def _current_user_from_wire(data: dict[str, Any]) -> CurrentUser:
    return CurrentUser(account=account_from_wire(data["account"]), details=details_from_wire(data.get("details")))


def _members_from_wire(data: list[dict[str, Any]] | None) -> list[Member]:
    return [member_from_wire(item) for item in data or []]


# ---------- Client ----------

class ApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        navigate: Callable[[str], None] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.navigate = navigate
        self._client = httpx.Client(
            base_url=base_url or config.get_api_base_url(),
            timeout=timeout if timeout is not None else config.get_timeout(),
            headers={"Content-Type": "application/json"},
            transport=transport,
            event_hooks={
                "request": [self._attach_token],
                "response": [self._handle_unauthorized],
            },
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ----- interceptors -----

    def _attach_token(self, request: httpx.Request) -> None:
        token = db.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    def _handle_unauthorized(self, response: httpx.Response) -> None:
        if response.status_code != 401:
            return
        logger.info("401 from %s %s; clearing token", response.request.method, response.request.url.path)
        db.remove_token()
        if self.navigate is not None:
            self.navigate(LOGIN_ROUTE)

    # ----- plumbing -----

    def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        payload: dict[str, Any] | None = None,
        translate: Callable[[Any], Any] | None = None,
    ) -> ApiResponse:
        try:
            response = self._client.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return ApiResponse.error(fallback)

        logger.debug("%s %s -> %s", method, path, response.status_code)
        body = _json_body(response)

        if not response.is_success:
            logger.warning("%s %s returned %s", method, path, response.status_code)
            if body is None:
                return ApiResponse.error(fallback)
            return ApiResponse.error(body.get("message") or fallback, body.get("errors"))

        if body is None:
            return ApiResponse.error(GENERIC_ERROR)
        if body.get("status") != "success":
            return ApiResponse.error(body.get("message") or fallback, body.get("errors"))

        data = body.get("data")
        if translate is not None:
            try:
                data = translate(data)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("%s %s: unexpected payload: %s", method, path, exc)
                return ApiResponse.error(GENERIC_ERROR)
        return ApiResponse.success(data, body.get("message"))

    # ----- auth -----

    def register(self, data: RegisterFormData) -> ApiResponse:
        return self._request(
            "POST",
            "/auth/register",
            "Registration failed. Please try again.",
            payload={"email": data.email.strip(), "password": data.password},
            translate=account_from_wire,
        )

    def login(self, data: LoginFormData) -> ApiResponse:
        return self._request(
            "POST",
            "/auth/login",
            "Login failed. Please try again.",
            payload={"email": data.email.strip(), "password": data.password},
            translate=_login_from_wire,
        )

    def get_current_user(self) -> ApiResponse:
        return self._request(
            "GET", "/user/me", "Failed to fetch user profile.", translate=_current_user_from_wire
        )

    def update_profile(self, data: MemberFormData, user: User | None = None) -> ApiResponse:
        return self._request(
            "PUT",
            "/user/me",
            "Failed to update profile.",
            payload=profile_to_wire(data, user),
            translate=details_from_wire,
        )

    # ----- members -----

    def list_members(self) -> ApiResponse:
        return self._request("GET", "/members", "Failed to fetch members.", translate=_members_from_wire)

    def add_member(self, data: MemberFormData) -> ApiResponse:
        return self._request(
            "POST",
            "/members",
            "Failed to add member.",
            payload=member_to_wire(data),
            translate=member_from_wire,
        )

    def delete_member(self, member_id: str) -> ApiResponse:
        return self._request("DELETE", f"/members/{member_id}", "Failed to delete member.")


def _json_body(response: httpx.Response) -> dict[str, Any] | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
