"""
Tests: /api/user
"""

from tests.conftest import auth_header, random_name


class TestMe:
    def test_me(self, client, diner):
        user, token = diner
        res = client.get("/api/user/me", headers=auth_header(token))
        assert res.status_code == 200
        assert res.json() == user

    def test_me_anonymous(self, client):
        assert client.get("/api/user/me").status_code == 401


class TestUpdateUser:
    def test_update_self(self, client, diner):
        user, token = diner
        name = random_name()
        res = client.put(
            f"/api/user/{user['id']}",
            json={"name": name, "email": f"{name}@test.com", "password": "new"},
            headers=auth_header(token),
        )
        assert res.status_code == 200
        body = res.json()
        assert body["user"]["name"] == name
        assert body["user"]["email"] == f"{name}@test.com"

        fresh = client.get("/api/user/me", headers=auth_header(body["token"]))
        assert fresh.json()["name"] == name

        login = client.put("/api/auth", json={"email": f"{name}@test.com", "password": "new"})
        assert login.status_code == 200

    def test_update_other_user_forbidden(self, client, diner, register):
        _, token = diner
        other, _, _ = register()
        res = client.put(
            f"/api/user/{other['id']}",
            json={"name": "hijacked"},
            headers=auth_header(token),
        )
        assert res.status_code == 403
        assert res.json() == {"message": "unauthorized"}

    def test_admin_updates_anyone(self, client, admin_token, diner):
        user, _ = diner
        res = client.put(
            f"/api/user/{user['id']}",
            json={"name": "renamed by admin"},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        assert res.json()["user"]["name"] == "renamed by admin"
        assert res.json()["user"]["email"] == user["email"]

    def test_update_to_taken_email(self, client, diner, register):
        user, token = diner
        other, _, _ = register()
        res = client.put(
            f"/api/user/{user['id']}",
            json={"email": other["email"]},
            headers=auth_header(token),
        )
        assert res.status_code == 409

    def test_bad_user_id(self, client, diner):
        _, token = diner
        res = client.put("/api/user/abc", json={}, headers=auth_header(token))
        assert res.status_code == 400


class TestDeleteUser:
    def test_delete_self(self, client, register):
        user, token, password = register()
        res = client.delete(f"/api/user/{user['id']}", headers=auth_header(token))
        assert res.status_code == 200
        assert res.json() == {"message": "user deleted"}

        assert client.get("/api/user/me", headers=auth_header(token)).status_code == 401
        login = client.put("/api/auth", json={"email": user["email"], "password": password})
        assert login.status_code == 500

    def test_delete_other_forbidden(self, client, diner, register):
        _, token = diner
        other, _, _ = register()
        res = client.delete(f"/api/user/{other['id']}", headers=auth_header(token))
        assert res.status_code == 403

    def test_admin_deletes_anyone(self, client, admin_token, register):
        user, token, _ = register()
        res = client.delete(f"/api/user/{user['id']}", headers=auth_header(admin_token))
        assert res.status_code == 200
        assert client.get("/api/user/me", headers=auth_header(token)).status_code == 401


class TestListUsers:
    def test_list_unauthenticated(self, client):
        res = client.get("/api/user")
        assert res.status_code == 401

    def test_list_as_diner_forbidden(self, client, diner):
        _, token = diner
        res = client.get("/api/user", headers=auth_header(token))
        assert res.status_code == 403

    def test_list_as_admin(self, client, admin_token, register):
        for _ in range(3):
            register()
        res = client.get("/api/user?page=0&limit=2&name=*", headers=auth_header(admin_token))
        assert res.status_code == 200
        body = res.json()
        assert len(body["users"]) == 2
        assert body["more"] is True

    def test_list_filter_by_name(self, client, admin_token, register):
        register(name="kaichen01")
        register(name="leewong01")
        res = client.get("/api/user?name=kai*", headers=auth_header(admin_token))
        names = [u["name"] for u in res.json()["users"]]
        assert names == ["kaichen01"]
