import json

import httpx
import pytest

import api
import db
from conftest import ACCOUNT, member_wire
from models import Gender, LoginFormData, MemberFormData, RegisterFormData, Role, UserDetails


def test_login_success_returns_translated_envelope(client, backend):
    backend.on("POST", "/auth/login", json={"status": "success", "data": {"account": ACCOUNT, "token": "tok"}})

    response = client.login(LoginFormData(email=" budi@example.com ", password="secret1"))

    assert response.ok
    assert response.data.token == "tok"
    assert response.data.account.id == "7"
    assert response.data.account.is_email_verified is True
    assert response.data.account.role is None
    assert json.loads(backend.requests[0].content) == {"email": "budi@example.com", "password": "secret1"}


def test_bearer_token_attached_when_present(client, backend):
    backend.on("GET", "/members", json={"status": "success", "data": []})

    client.list_members()
    assert "Authorization" not in backend.requests[-1].headers

    db.set_token("tok")
    client.list_members()
    assert backend.requests[-1].headers["Authorization"] == "Bearer tok"


def test_server_error_message_is_surfaced(client, backend):
    backend.on(
        "POST",
        "/auth/register",
        status=409,
        json={"status": "error", "message": "Email already registered", "errors": {"data_duplicate": True}},
    )

    response = client.register(RegisterFormData(email="a@b.co", password="secret1"))

    assert not response.ok
    assert response.message == "Email already registered"
    assert response.errors == {"data_duplicate": True}


def test_error_envelope_with_2xx_is_returned_as_error(client, backend):
    backend.on("GET", "/members", json={"status": "error", "message": "query failed", "errors": {"query_error": True}})

    response = client.list_members()

    assert response.status == "error"
    assert response.message == "query failed"


@pytest.mark.parametrize(
    "call,method,path,fallback",
    [
        (lambda c: c.login(LoginFormData("a@b.co", "secret1")), "POST", "/auth/login", "Login failed. Please try again."),
        (lambda c: c.register(RegisterFormData(email="a@b.co")), "POST", "/auth/register", "Registration failed. Please try again."),
        (lambda c: c.get_current_user(), "GET", "/user/me", "Failed to fetch user profile."),
        (lambda c: c.update_profile(MemberFormData()), "PUT", "/user/me", "Failed to update profile."),
        (lambda c: c.list_members(), "GET", "/members", "Failed to fetch members."),
        (lambda c: c.add_member(MemberFormData()), "POST", "/members", "Failed to add member."),
        (lambda c: c.delete_member("3"), "DELETE", "/members/3", "Failed to delete member."),
    ],
)
def test_fallback_message_when_server_gives_none(client, backend, call, method, path, fallback):
    backend.on(method, path, status=500, json={})
    response = call(client)
    assert response.status == "error"
    assert response.message == fallback


def test_network_error_resolves_to_fallback(client, backend):
    backend.on("GET", "/members", exc=httpx.ConnectError("connection refused"))

    response = client.list_members()

    assert response.status == "error"
    assert response.message == "Failed to fetch members."


def test_unparseable_success_body(client, backend):
    backend.routes[("GET", "/members")] = (200, None, None)
    response = client.list_members()
    assert response.status == "error"


def test_malformed_success_payload_does_not_raise(client, backend):
    backend.on("POST", "/auth/login", json={"status": "success", "data": {"token": "tok"}})
    response = client.login(LoginFormData("a@b.co", "secret1"))
    assert response.status == "error"
    assert response.message == api.GENERIC_ERROR


@pytest.mark.parametrize("path,method", [("/members", "GET"), ("/user/me", "GET"), ("/members/1", "DELETE")])
def test_401_clears_token_and_navigates_to_login(client, backend, navigations, path, method):
    db.set_token("tok")
    backend.on(method, path, status=401, json={"status": "error", "message": "Token expired"})

    if method == "DELETE":
        response = client.delete_member("1")
    elif path == "/user/me":
        response = client.get_current_user()
    else:
        response = client.list_members()

    assert response.status == "error"
    assert response.message == "Token expired"
    assert db.get_token() is None
    assert navigations == [api.LOGIN_ROUTE]


def test_list_members_translates_snake_case(client, backend):
    backend.on("GET", "/members", json={"status": "success", "data": [member_wire(1), member_wire("2", name="Ani")]})

    response = client.list_members()

    assert [m.id for m in response.data] == ["1", "2"]
    first = response.data[0]
    assert first.full_name == "Siti Aminah"
    assert first.phone_number == "081298765432"
    assert first.gender is Gender.FEMALE
    assert first.registration_date == "2024-03-01T10:00:00Z"


def test_add_member_sends_snake_case_body(client, backend):
    backend.on("POST", "/members", status=201, json={"status": "success", "data": member_wire(9)})

    form = MemberFormData("Siti Aminah ", "siti@example.com", "081298765432", "female", "1995-08-17", "Jl. Sudirman 5")
    response = client.add_member(form)

    assert response.ok
    assert response.data.id == "9"
    assert json.loads(backend.requests[0].content) == {
        "full_name": "Siti Aminah",
        "email": "siti@example.com",
        "phone_number": "081298765432",
        "gender": "female",
        "birth_date": "1995-08-17",
        "address": "Jl. Sudirman 5",
    }


def test_update_profile_body(client, backend):
    from conftest import make_user

    backend.on("PUT", "/user/me", json={"status": "success", "data": {"full_name": "Budi S"}})
    user = make_user(initial_name="BS", university="UI")

    response = client.update_profile(
        MemberFormData("Budi S", "budi@example.com", "081234567890", "male", "1990-05-17", "Jl. Merdeka 1"), user
    )

    assert response.ok
    assert response.data == UserDetails(full_name="Budi S")
    assert json.loads(backend.requests[0].content) == {
        "initial_name": "BS",
        "full_name": "Budi S",
        "university": "UI",
        "phone_number": "081234567890",
    }


def test_current_user_translation(client, backend):
    backend.on(
        "GET",
        "/user/me",
        json={
            "status": "success",
            "data": {"account": {**ACCOUNT, "role": "admin"}, "details": {"full_name": "Budi", "phone_number": "0812"}},
        },
    )

    current = client.get_current_user().data

    assert current.account.role is Role.ADMIN
    assert current.details.full_name == "Budi"
    assert current.details.address is None


def test_delete_member_success_data_is_none(client, backend):
    backend.on("DELETE", "/members/3", json={"status": "success", "data": None, "message": "deleted"})
    response = client.delete_member("3")
    assert response.ok
    assert response.data is None
    assert response.message == "deleted"
