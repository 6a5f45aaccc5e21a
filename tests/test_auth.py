"""
Test authentication, per-user isolation and sign-out.
"""
import pytest

from jobtracker.auth.dependencies import LOCAL_USER_EMAIL
from jobtracker.auth.service import auth_service

API = "/api/applications"
PASSWORD = "Sup3rSecret"


def _register_and_login(client, email):
    response = client.post("/auth/register", json={"email": email, "password": PASSWORD})
    assert response.status_code == 201, response.text

    response = client.post("/auth/login", data={"username": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()


def _headers(login):
    return {"Authorization": f"Bearer {login['token']['access_token']}"}


class TestSingleUserMode:

    def test_status_reports_single_user_mode(self, test_client):
        response = test_client.get("/auth/status")

        assert response.status_code == 200
        assert response.json()["single_user_mode"] is True

    def test_requests_use_local_user(self, test_client):
        response = test_client.get("/auth/me")

        assert response.status_code == 200
        assert response.json()["email"] == LOCAL_USER_EMAIL

    def test_registration_is_disabled(self, test_client):
        response = test_client.post(
            "/auth/register", json={"email": "alice@example.com", "password": PASSWORD}
        )

        assert response.status_code == 400

    def test_logout_drops_cached_list(self, test_client, registry):
        test_client.post(f"{API}/", json={"jobTitle": "Engineer", "company": "Acme"})
        local_user_id = test_client.get("/auth/me").json()["id"]

        response = test_client.post("/auth/logout", json={"refresh_token": "unused"})

        assert response.status_code == 200
        assert local_user_id not in registry._states

    def test_logout_needs_no_body(self, test_client, registry):
        test_client.get(f"{API}/")
        local_user_id = test_client.get("/auth/me").json()["id"]
        assert local_user_id in registry._states

        response = test_client.post("/auth/logout")

        assert response.status_code == 200
        assert local_user_id not in registry._states


class TestPasswordRules:

    def test_strong_password_has_no_problems(self):
        assert auth_service.password_problems(PASSWORD) == []

    @pytest.mark.parametrize("password, problem", [
        ("Sh0rt", "at least 8 characters"),
        ("alllower1", "uppercase"),
        ("ALLUPPER1", "lowercase"),
        ("NoDigitsHere", "number"),
        ("Aa1" + "x" * 70, "at most 72 bytes"),
    ])
    def test_weak_passwords_are_explained(self, password, problem):
        problems = auth_service.password_problems(password)

        assert any(problem in message for message in problems)


@pytest.mark.usefixtures("multi_user_mode")
class TestMultiUserMode:

    def test_missing_token_is_rejected(self, test_client):
        response = test_client.get(f"{API}/")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token_is_rejected(self, test_client):
        response = test_client.get(f"{API}/", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_register_and_login(self, test_client):
        login = _register_and_login(test_client, "carol@example.com")

        assert login["user"]["email"] == "carol@example.com"
        assert login["user"]["has_password"] is True
        assert login["token"]["token_type"] == "bearer"

    def test_weak_password_is_rejected(self, test_client):
        response = test_client.post(
            "/auth/register", json={"email": "carol@example.com", "password": "alllowercase"}
        )

        assert response.status_code == 400

    def test_wrong_password_is_rejected(self, test_client):
        _register_and_login(test_client, "carol@example.com")

        response = test_client.post(
            "/auth/login", data={"username": "carol@example.com", "password": "Wr0ngPassword"}
        )

        assert response.status_code == 401

    def test_users_only_see_their_own_applications(self, test_client):
        carol = _headers(_register_and_login(test_client, "carol@example.com"))
        dave = _headers(_register_and_login(test_client, "dave@example.com"))

        created = test_client.post(
            f"{API}/", json={"jobTitle": "Engineer", "company": "Acme"}, headers=carol
        ).json()

        assert [app["id"] for app in test_client.get(f"{API}/", headers=carol).json()] == [created["id"]]
        assert test_client.get(f"{API}/", headers=dave).json() == []
        assert test_client.get(f"{API}/{created['id']}", headers=dave).status_code == 404
        response = test_client.patch(f"{API}/{created['id']}", json={"status": "offer"}, headers=dave)
        assert response.status_code == 404

    def test_refresh_rotates_token(self, test_client):
        login = _register_and_login(test_client, "carol@example.com")
        old_refresh = login["token"]["refresh_token"]

        response = test_client.post("/auth/refresh", json={"refresh_token": old_refresh})

        assert response.status_code == 200
        assert response.json()["refresh_token"] != old_refresh
        reuse = test_client.post("/auth/refresh", json={"refresh_token": old_refresh})
        assert reuse.status_code == 401

    def test_logout_ends_session(self, test_client, registry):
        login = _register_and_login(test_client, "carol@example.com")
        headers = _headers(login)
        test_client.post(f"{API}/", json={"jobTitle": "Engineer", "company": "Acme"}, headers=headers)
        user_id = login["user"]["id"]
        assert user_id in registry._states

        response = test_client.post(
            "/auth/logout", json={"refresh_token": login["token"]["refresh_token"]}
        )

        assert response.status_code == 200
        assert user_id not in registry._states
        refresh = test_client.post(
            "/auth/refresh", json={"refresh_token": login["token"]["refresh_token"]}
        )
        assert refresh.status_code == 401

    def test_logout_with_unknown_token_succeeds(self, test_client):
        response = test_client.post("/auth/logout", json={"refresh_token": "unknown"})

        assert response.status_code == 200

    def test_logout_without_token_succeeds(self, test_client):
        response = test_client.post("/auth/logout")

        assert response.status_code == 200
