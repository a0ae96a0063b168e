"""
Tests: /api/auth
"""

from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, auth_header, random_name


class TestRegister:
    def test_register_returns_diner_and_token(self, client):
        name = random_name()
        res = client.post(
            "/api/auth",
            json={"name": name, "email": f"{name}@test.com", "password": "a"},
        )
        assert res.status_code == 200
        body = res.json()
        assert body["user"]["name"] == name
        assert body["user"]["email"] == f"{name}@test.com"
        assert body["user"]["roles"] == [{"role": "diner"}]
        assert "password" not in body["user"]
        assert body["token"].count(".") == 2

    def test_register_missing_field(self, client):
        res = client.post("/api/auth", json={"name": "no email", "password": "a"})
        assert res.status_code == 400
        assert res.json() == {"message": "name, email, and password are required"}

    def test_register_duplicate_email(self, client, register):
        user, _, _ = register()
        res = client.post(
            "/api/auth",
            json={"name": "copy", "email": user["email"], "password": "a"},
        )
        assert res.status_code == 409


class TestLogin:
    def test_login(self, client, register):
        user, _, password = register()
        res = client.put("/api/auth", json={"email": user["email"], "password": password})
        assert res.status_code == 200
        assert res.json()["user"]["id"] == user["id"]
        assert res.json()["token"]

    def test_login_bootstrap_admin(self, client):
        res = client.put("/api/auth", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert res.status_code == 200
        assert {"role": "admin"} in res.json()["user"]["roles"]

    def test_wrong_password(self, client, register):
        user, _, _ = register()
        res = client.put("/api/auth", json={"email": user["email"], "password": "nope"})
        assert res.status_code == 500
        assert res.json() == {"message": "invalid credentials"}

    def test_unknown_email(self, client):
        res = client.put("/api/auth", json={"email": "ghost@test.com", "password": "a"})
        assert res.status_code == 500
        assert res.json() == {"message": "invalid credentials"}

    def test_each_login_is_a_separate_session(self, client, register):
        user, first, password = register()
        second = client.put("/api/auth", json={"email": user["email"], "password": password}).json()["token"]
        assert first != second

        client.delete("/api/auth", headers=auth_header(first))

        assert client.get("/api/user/me", headers=auth_header(first)).status_code == 401
        assert client.get("/api/user/me", headers=auth_header(second)).status_code == 200


class TestLogout:
    def test_logout(self, client, diner):
        _, token = diner
        res = client.delete("/api/auth", headers=auth_header(token))
        assert res.status_code == 200
        assert res.json() == {"message": "logout successful"}

        res = client.get("/api/user/me", headers=auth_header(token))
        assert res.status_code == 401
        assert res.json() == {"message": "unauthorized"}

    def test_logout_without_token(self, client):
        res = client.delete("/api/auth")
        assert res.status_code == 401
        assert res.json() == {"message": "unauthorized"}

    def test_malformed_header_is_anonymous(self, client, diner):
        _, token = diner
        res = client.delete("/api/auth", headers={"Authorization": token})
        assert res.status_code == 401
