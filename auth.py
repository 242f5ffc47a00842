"""
auth.py
Session manager: the single owner of "who is logged in".

Login/register failures are reported through state.error; refresh failures
are swallowed so a transient error never drops an authenticated session.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

import db
from api import LOGIN_ROUTE, ApiClient
from models import (
    Account,
    ApiResponse,
    AuthState,
    CurrentUser,
    Gender,
    LoginFormData,
    MemberFormData,
    RegisterFormData,
    Role,
    User,
    is_admin,
)

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Login failed. Please try again."
REGISTER_FAILED = "Registration failed. Please try again."
SESSION_SAVE_FAILED = "Could not save the session. Please try again."
PROFILE_FAILED = "Failed to update profile."


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def user_from_login(account: Account) -> User:
    """
    The login endpoint only returns the account block, so profile fields get
    placeholders: empty strings, male gender, USER role (unless the backend
    sends one) and the current time as registration date.
    """
    return User(
        id=account.id,
        uuid=account.uuid,
        email=account.email,
        is_email_verified=account.is_email_verified,
        is_detail_completed=account.is_detail_completed,
        gender=Gender.MALE,
        role=account.role or Role.USER,
        registration_date=_now_iso(),
    )


def _pick(new, old):
    return old if new is None else new


def merge_current_user(prior: User | None, current: CurrentUser) -> User:
    """Overlay a /user/me payload on the cached user, keeping fields it lacks."""
    account, details = current.account, current.details
    base = prior or user_from_login(account)
    return replace(
        base,
        id=account.id,
        uuid=account.uuid or base.uuid,
        email=account.email or base.email,
        is_email_verified=account.is_email_verified,
        is_detail_completed=account.is_detail_completed,
        full_name=_pick(details.full_name, base.full_name),
        phone_number=_pick(details.phone_number, base.phone_number),
        university=_pick(details.university, base.university),
        initial_name=_pick(details.initial_name, base.initial_name),
        gender=_pick(details.gender, base.gender),
        birth_date=_pick(details.birth_date, base.birth_date),
        address=_pick(details.address, base.address),
        birth_place=_pick(details.birth_place, base.birth_place),
        role=account.role or base.role,
    )


class AuthSession:
    def __init__(self, api: ApiClient, navigate: Callable[[str], None] | None = None):
        self.api = api
        self.navigate = navigate
        self.state = AuthState()

    @property
    def user(self) -> User | None:
        return self.state.user

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated

    @property
    def is_admin(self) -> bool:
        return self.state.is_authenticated and is_admin(self.state.user)

    def initialize(self) -> AuthState:
        """Rehydrate from the session store. Never touches the network."""
        token = db.get_token()
        user = db.get_user()
        if token and user:
            self.state = AuthState(is_authenticated=True, user=user)
        else:
            if token or user:
                logger.warning("Incomplete stored session; clearing it")
                db.clear_session()
            self.state = AuthState()
        return self.state

    def _begin(self) -> None:
        self.state = replace(self.state, loading=True, error=None)

    def _fail(self, message: str) -> None:
        self.state = AuthState(error=message)

    def login(self, data: LoginFormData) -> bool:
        self._begin()
        response = self.api.login(data)
        if not response.ok:
            self._fail(response.message or LOGIN_FAILED)
            return False

        user = user_from_login(response.data.account)
        # persist before the state flips to authenticated
        try:
            db.set_token(response.data.token)
            db.set_user(user)
        except sqlite3.Error as exc:
            logger.error("Failed to persist session: %s", exc)
            self._fail(SESSION_SAVE_FAILED)
            db.clear_session()
            return False
        self.state = AuthState(is_authenticated=True, user=user)
        logger.info("Logged in as %s", user.email)
        return True

    def register(self, data: RegisterFormData) -> bool:
        self._begin()
        response = self.api.register(data)
        if not response.ok:
            self._fail(response.message or REGISTER_FAILED)
            return False
        # registration does not issue a token
        return self.login(LoginFormData(email=data.email, password=data.password))

    def logout(self) -> None:
        db.clear_session()
        self.state = AuthState()
        if self.navigate is not None:
            self.navigate(LOGIN_ROUTE)

    def refresh_user(self) -> None:
        if not self.state.is_authenticated:
            return
        self.state = replace(self.state, loading=True)
        response = self.api.get_current_user()
        if not response.ok:
            logger.info("User refresh failed: %s", response.message)
            self.state = replace(self.state, loading=False)
            return

        user = merge_current_user(self.state.user, response.data)
        db.set_user(user)
        self.state = replace(self.state, user=user, loading=False)

    def update_profile(self, data: MemberFormData) -> ApiResponse:
        """
        Save the profile form. PUT /user/me only takes name and phone, and
        /user/me never returns gender, birth date or address, so those are
        kept in the cached snapshot once the server accepts the update.
        """
        user = self.state.user
        if not self.state.is_authenticated or user is None:
            return ApiResponse.error(PROFILE_FAILED)
        response = self.api.update_profile(data, user)
        if not response.ok:
            return response

        user = replace(
            user,
            full_name=data.full_name.strip(),
            phone_number=data.phone_number.strip(),
            gender=Gender.parse(data.gender, user.gender),
            birth_date=data.birth_date or user.birth_date,
            address=data.address.strip(),
        )
        db.set_user(user)
        self.state = replace(self.state, user=user)
        self.refresh_user()
        return response

    def clear_error(self) -> None:
        self.state = replace(self.state, error=None)
