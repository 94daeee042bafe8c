# ledger/tests/test_auth_routes.py
# Tests for signup, login, current-identity and the bearer token dependency

from datetime import timedelta

from fastapi.testclient import TestClient

from ledger.auth import TokenService
from ledger.main import create_app

from .conftest import TEST_SECRET, make_settings


def test_signup_returns_token_for_new_user(client: TestClient):
    response = client.post("/signup", json={"email": "a@x.com", "password": "pw123456"})
    assert response.status_code == 201
    assert set(response.json()) == {"token"}


def test_signup_token_resolves_to_submitted_email(client: TestClient, signup):
    _, headers = signup(email="a@x.com", password="pw123456")

    response = client.get("/current", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "a@x.com"
    assert "id" in data
    # Ensure the password is not returned in any form
    assert "password" not in data
    assert "hashedPassword" not in data
    assert "hashed_password" not in data


def test_signup_missing_fields_lists_them(client: TestClient):
    response = client.post("/signup", json={"email": ""})
    assert response.status_code == 400
    assert response.json() == {"detail": "Missing required fields: email, password"}


def test_signup_invalid_email(client: TestClient):
    response = client.post("/signup", json={"email": "not-an-email", "password": "pw123456"})
    assert response.status_code == 400
    assert "email" in response.json()["detail"]


def test_signup_duplicate_email_is_conflict(client: TestClient, signup):
    signup(email="a@x.com")
    response = client.post("/signup", json={"email": "a@x.com", "password": "other-password"})
    assert response.status_code == 409
    assert response.json() == {"detail": "Email already registered"}


def test_signup_requires_configured_name_fields(database):
    settings = make_settings(signup_required_fields="firstName,lastName")
    with TestClient(create_app(settings, database=database)) as client:
        response = client.post("/signup", json={"email": "a@x.com", "password": "pw123456", "firstName": "Ada"})
        assert response.status_code == 400
        assert response.json() == {"detail": "Missing required fields: lastName"}

        response = client.post(
            "/signup",
            json={"email": "a@x.com", "password": "pw123456", "firstName": "Ada", "lastName": "Lovelace"},
        )
        assert response.status_code == 201
        headers = {"Authorization": f"Bearer {response.json()['token']}"}

        current = client.get("/current", headers=headers).json()
        assert current["firstName"] == "Ada"
        assert current["lastName"] == "Lovelace"


def test_login_with_signup_credentials(client: TestClient, signup):
    signup(email="a@x.com", password="pw123456")

    response = client.post("/login", json={"email": "a@x.com", "password": "pw123456"})
    assert response.status_code == 200
    token = response.json()["token"]

    current = client.get("/current", headers={"Authorization": f"Bearer {token}"})
    assert current.json()["email"] == "a@x.com"


def test_login_wrong_password_fails(client: TestClient, signup):
    signup(email="a@x.com", password="pw123456")

    for password in ("pw1234567", "PW123456", "x"):
        response = client.post("/login", json={"email": "a@x.com", "password": password})
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid email or password"}


def test_login_unknown_email_gives_same_answer(client: TestClient):
    response = client.post("/login", json={"email": "nobody@x.com", "password": "pw123456"})
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid email or password"}


def test_login_missing_fields(client: TestClient):
    response = client.post("/login", json={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.json() == {"detail": "Missing required fields: password"}


def test_current_without_token_is_missing_credential(client: TestClient):
    response = client.get("/current")
    assert response.status_code == 401
    assert response.json() == {"detail": "Not authenticated"}
    assert response.headers["www-authenticate"] == "Bearer"


def test_current_with_non_bearer_scheme_is_missing_credential(client: TestClient):
    response = client.get("/current", headers={"Authorization": "Basic dXNlcjpwYXNz"})
    assert response.status_code == 401


def test_current_with_bad_token_is_invalid_credential(client: TestClient):
    response = client.get("/current", headers={"Authorization": "Bearer not-a-real-token"})
    assert response.status_code == 403


def test_expired_token_is_invalid_not_missing(client: TestClient, signup):
    token, _ = signup(email="a@x.com")
    subject = TokenService(TEST_SECRET, 60).verify(token)

    expired = TokenService(TEST_SECRET, timedelta(seconds=-1)).issue(subject)
    response = client.get("/current", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 403
    assert response.json() == {"detail": "Token has expired"}


def test_token_for_unknown_user_is_not_found(client: TestClient):
    token = TokenService(TEST_SECRET, 60).issue("0" * 32)
    response = client.get("/current", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_signup_keeps_email_exactly_as_submitted(client: TestClient, signup):
    _, headers = signup(email="Ann@Ledger.IO")

    current = client.get("/current", headers=headers)
    assert current.status_code == 200
    assert current.json()["email"] == "Ann@Ledger.IO"

    login = client.post("/login", json={"email": "Ann@Ledger.IO", "password": "pw123456"})
    assert login.status_code == 200


def test_openapi_documents_json_bodies(client: TestClient):
    paths = client.get("/openapi.json").json()["paths"]

    signup_schema = paths["/signup"]["post"]["requestBody"]["content"]["application/json"]["schema"]
    assert {"email", "password"} <= set(signup_schema["properties"])

    login_schema = paths["/login"]["post"]["requestBody"]["content"]["application/json"]["schema"]
    assert {"email", "password"} <= set(login_schema["properties"])
