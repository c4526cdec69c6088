from __future__ import annotations

import time

import pytest

from tiendita.domain.account import Address
from tiendita.security.tokens import SessionTokenIssuer

from .conftest import TEST_ISSUER, TEST_SECRET


def test_login_returns_token_for_valid_credentials(api_client, seed_account):
    account_id = seed_account("a@b.com", "secret", account_id=1)

    response = api_client.post("/login", json={"email": "a@b.com", "password": "secret"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Inicio de sesión exitoso"
    claims = SessionTokenIssuer(TEST_SECRET, issuer=TEST_ISSUER).verify(body["token"])
    assert claims.account_id == account_id
    assert claims.email == "a@b.com"
    assert set(body) == {"message", "token"}
    assert "$2b$" not in response.text


def test_login_with_wrong_password(api_client, seed_account):
    seed_account("a@b.com", "secret", account_id=1)

    response = api_client.post("/login", json={"email": "a@b.com", "password": "wrong"})

    assert response.status_code == 400
    assert response.json() == {"message": "Credenciales inválidas"}


def test_login_does_not_reveal_account_existence(api_client, seed_account):
    seed_account("a@b.com", "secret")

    unknown = api_client.post("/login", json={"email": "ghost@b.com", "password": "secret"})
    wrong = api_client.post("/login", json={"email": "a@b.com", "password": "nope"})

    assert unknown.status_code == wrong.status_code == 400
    assert unknown.json() == wrong.json()


@pytest.mark.parametrize("payload", [{}, {"email": "a@b.com"}, {"password": "x"}, {"email": "", "password": ""}])
def test_login_requires_both_fields(api_client, payload):
    response = api_client.post("/login", json=payload)

    assert response.status_code == 400
    assert response.json() == {"message": "Email y password son obligatorios"}


def test_login_storage_failure_is_generic(api_client, account_repository):
    account_repository.fail = True

    response = api_client.post("/login", json={"email": "a@b.com", "password": "secret"})

    assert response.status_code == 500
    assert response.json() == {"error": "Error interno del servidor"}


def test_login_with_non_string_fields_is_bad_request(api_client):
    response = api_client.post("/login", json={"email": ["a@b.com"], "password": {"x": 1}})

    assert response.status_code == 400
    assert "message" in response.json()


def test_add_address_to_empty_list(api_client, account_repository):
    account_repository.seed(email="c@b.com", password_hash="x", account_id=5, addresses_raw="[]")

    response = api_client.put(
        "/users/5/addresses", json={"street": "Main", "city": "X", "country": "Y"}
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Dirección agregada correctamente"}
    fetched = api_client.get("/users/5").json()
    assert fetched["addresses"] == [{"street": "Main", "city": "X", "country": "Y"}]


def test_add_address_when_column_holds_json_null(api_client, account_repository):
    account_repository.seed(email="c@b.com", password_hash="x", account_id=5, addresses_raw="null")

    response = api_client.put(
        "/users/5/addresses", json={"street": "Main", "city": "X", "country": "Y"}
    )

    assert response.status_code == 200
    assert account_repository.stored_addresses(5) == [Address("Main", "X", "Y")]


def test_add_address_appends_to_existing_list(api_client, account_repository):
    account_repository.seed(email="c@b.com", password_hash="x", account_id=5)
    for street in ("Uno", "Dos"):
        api_client.put("/users/5/addresses", json={"street": street, "city": "X", "country": "Y"})

    assert account_repository.stored_addresses(5) == [
        Address("Uno", "X", "Y"),
        Address("Dos", "X", "Y"),
    ]


def test_add_address_unknown_user(api_client):
    response = api_client.put(
        "/users/999/addresses", json={"street": "Main", "city": "X", "country": "Y"}
    )

    assert response.status_code == 404
    assert response.json() == {"message": "Usuario no encontrado"}


@pytest.mark.parametrize(
    "payload",
    [{}, {"street": "Main", "city": "X"}, {"street": "", "city": "X", "country": "Y"}],
)
def test_add_address_requires_all_fields(api_client, account_repository, payload):
    account_repository.seed(email="c@b.com", password_hash="x", account_id=5)

    response = api_client.put("/users/5/addresses", json=payload)

    assert response.status_code == 400
    assert response.json() == {"message": "Todos los campos son obligatorios"}
    assert account_repository.raw_addresses(5) is None


def test_add_address_storage_failure(api_client, account_repository):
    account_repository.seed(email="c@b.com", password_hash="x", account_id=5)
    account_repository.fail = True

    response = api_client.put(
        "/users/5/addresses", json={"street": "Main", "city": "X", "country": "Y"}
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Error interno del servidor"}


def test_add_address_non_numeric_id(api_client):
    response = api_client.put(
        "/users/abc/addresses", json={"street": "Main", "city": "X", "country": "Y"}
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Datos de entrada inválidos"}


def test_register_then_login(api_client):
    created = api_client.post(
        "/users", json={"name": "Ana", "email": "ana@b.com", "password": "secret"}
    )
    assert created.status_code == 201
    assert created.json() == {"message": "Usuario registrado correctamente"}

    response = api_client.post("/login", json={"email": "ana@b.com", "password": "secret"})
    assert response.status_code == 200


def test_register_requires_all_fields(api_client):
    response = api_client.post("/users", json={"name": "Ana", "email": "ana@b.com"})

    assert response.status_code == 400
    assert response.json() == {"message": "Todos los campos son obligatorios"}


def test_user_listing_never_exposes_password_hash(api_client, seed_account):
    seed_account("a@b.com", "secret", name="Ana")
    seed_account("b@b.com", "secret", name="Beto")

    response = api_client.get("/users")

    assert response.status_code == 200
    body = response.json()
    assert [user["name"] for user in body] == ["Ana", "Beto"]
    assert all(set(user) == {"id", "name", "email", "isAdmin", "addresses"} for user in body)
    assert "$2b$" not in response.text


def test_get_unknown_user(api_client):
    response = api_client.get("/users/42")

    assert response.status_code == 404
    assert response.json() == {"message": "Usuario no encontrado"}


def test_user_listing_storage_failure(api_client, account_repository):
    account_repository.fail = True

    response = api_client.get("/users")

    assert response.status_code == 500
    assert response.json() == {"message": "Error al obtener los usuarios"}


def test_session_endpoint_decodes_login_token(api_client, seed_account):
    account_id = seed_account("a@b.com", "secret")
    token = api_client.post("/login", json={"email": "a@b.com", "password": "secret"}).json()["token"]

    response = api_client.get("/session", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    body = response.json()
    assert body["accountId"] == account_id
    assert body["email"] == "a@b.com"
    assert "issuedAt" in body and "expiresAt" in body


def test_session_endpoint_distinguishes_expired_tokens(api_client):
    stale = SessionTokenIssuer(
        TEST_SECRET, issuer=TEST_ISSUER, clock=lambda: time.time() - 7200
    ).issue(1, "a@b.com")

    response = api_client.get("/session", headers={"Authorization": f"Bearer {stale.token}"})

    assert response.status_code == 401
    assert response.json() == {"message": "Token expirado"}


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer not-a-token"}])
def test_session_endpoint_rejects_invalid_tokens(api_client, headers):
    response = api_client.get("/session", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"message": "Token inválido"}


def test_token_survives_later_account_changes(api_client, seed_account):
    account_id = seed_account("a@b.com", "secret")
    token = api_client.post("/login", json={"email": "a@b.com", "password": "secret"}).json()["token"]

    api_client.put(
        f"/users/{account_id}/addresses", json={"street": "Main", "city": "X", "country": "Y"}
    )
    response = api_client.get("/session", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
