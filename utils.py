"""
utils.py
Form validation, touched-field tracking, member search, display helpers.
"""

from __future__ import annotations

import re
from dataclasses import fields, replace
from datetime import datetime
from typing import Any, Callable, Iterable

import pandas as pd

from models import FormErrors, Gender, LoginFormData, Member, MemberFormData, RegisterFormData

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Indonesian mobile numbers: 0 / 62 / +62, then 8, then 7-10 digits
PHONE_RE = re.compile(r"^(\+62|62|0)8[1-9][0-9]{6,9}$")

MIN_PASSWORD_LENGTH = 6

GENDER_VALUES = {g.value for g in Gender}

MONTHS_ID = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


# ---------- Field rules ----------

def _check_required_text(errors: FormErrors, key: str, value: str, message: str) -> None:
    if not (value or "").strip():
        errors[key] = message


def _check_email(errors: FormErrors, value: str) -> None:
    if not (value or "").strip():
        errors["email"] = "Email wajib diisi"
    elif not EMAIL_RE.match(value):
        errors["email"] = "Format email tidak valid"


def _check_password(errors: FormErrors, value: str) -> None:
    if not value:
        errors["password"] = "Password wajib diisi"
    elif len(value) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password minimal {MIN_PASSWORD_LENGTH} karakter"


def _check_phone(errors: FormErrors, value: str) -> None:
    if not (value or "").strip():
        errors["phone_number"] = "Nomor HP wajib diisi"
    elif not PHONE_RE.match(value):
        errors["phone_number"] = "Format nomor HP tidak valid (format: 08xxxxxxxxxx)"


def _check_profile_fields(errors: FormErrors, data) -> None:
    _check_phone(errors, data.phone_number)
    if data.gender not in GENDER_VALUES:
        errors["gender"] = "Gender wajib dipilih"
    if not data.birth_date:
        errors["birth_date"] = "Tanggal lahir wajib diisi"
    _check_required_text(errors, "address", data.address, "Alamat wajib diisi")


# ---------- Form validators ----------

def validate_login_form(data: LoginFormData) -> FormErrors:
    errors: FormErrors = {}
    _check_email(errors, data.email)
    _check_password(errors, data.password)
    return errors


def validate_register_form(data: RegisterFormData) -> FormErrors:
    errors: FormErrors = {}
    _check_required_text(errors, "full_name", data.full_name, "Nama lengkap wajib diisi")
    _check_email(errors, data.email)
    _check_password(errors, data.password)

    if not data.confirm_password:
        errors["confirm_password"] = "Konfirmasi password wajib diisi"
    elif data.password != data.confirm_password:
        errors["confirm_password"] = "Password dan konfirmasi password tidak sama"

    _check_profile_fields(errors, data)
    return errors


def validate_member_form(data: MemberFormData) -> FormErrors:
    """Used by both the add-member form and the profile form."""
    errors: FormErrors = {}
    _check_required_text(errors, "full_name", data.full_name, "Nama lengkap wajib diisi")
    _check_email(errors, data.email)
    _check_profile_fields(errors, data)
    return errors


def is_form_valid(errors: FormErrors) -> bool:
    return len(errors) == 0


class FormTracker:
    """
    Holds one form's values and errors under the touched-field policy:
    a field is re-validated on change only after it has been blurred once,
    while submit() validates everything.
    """

    def __init__(self, data: Any, validator: Callable[[Any], FormErrors]):
        self.data = data
        self.validator = validator
        self.errors: FormErrors = {}
        self.touched: set[str] = set()

    def _revalidate(self, name: str) -> None:
        field_error = self.validator(self.data).get(name)
        if field_error:
            self.errors[name] = field_error
        else:
            self.errors.pop(name, None)

    def change(self, name: str, value: Any) -> None:
        self.data = replace(self.data, **{name: value})
        if name in self.touched:
            self._revalidate(name)

    def blur(self, name: str) -> None:
        self.touched.add(name)
        self._revalidate(name)

    def submit(self) -> FormErrors:
        self.touched = {f.name for f in fields(self.data)}
        self.errors = self.validator(self.data)
        return dict(self.errors)

    @property
    def is_valid(self) -> bool:
        return is_form_valid(self.errors)


# ---------- Members ----------

def filter_members(members: Iterable[Member], term: str) -> list[Member]:
    """Case-insensitive substring match on name, email and phone."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(members)
    return [
        m for m in members
        if needle in m.full_name.lower()
        or needle in m.email.lower()
        or needle in m.phone_number.lower()
    ]


def format_date(value: str) -> str:
    """Render an ISO date/datetime as '17 Agustus 2024'; unparseable input is returned as-is."""
    if not value:
        return ""
    try:
        d = datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return value
    return f"{d.day:02d} {MONTHS_ID[d.month - 1]} {d.year}"


def gender_label(gender: Gender) -> str:
    return "Laki-laki" if gender is Gender.MALE else "Perempuan"


def members_to_dataframe(members: Iterable[Member]) -> pd.DataFrame:
    rows = [
        {
            "id": m.id,
            "Nama": m.full_name,
            "Email": m.email,
            "No. HP": m.phone_number,
            "Gender": gender_label(m.gender),
            "Tanggal Lahir": format_date(m.birth_date),
            "Tgl Registrasi": format_date(m.registration_date),
        }
        for m in members
    ]
    if not rows:
        return pd.DataFrame(
            columns=["id", "Nama", "Email", "No. HP", "Gender", "Tanggal Lahir", "Tgl Registrasi"]
        )
    return pd.DataFrame(rows)
