"""Account self-service and admin user management endpoints."""

from designfolio.models import User

from helpers import TEST_PASSWORD, ApiTestCase, add_user


class TestAdminUserManagement(ApiTestCase):
    admin_emails = "boss@x.com"

    def setUp(self) -> None:
        super().setUp()
        self.boss = add_user(self.db, "boss", "boss@x.com", role="viewer")
        self.alice = add_user(self.db, "alice", "alice@x.com", role="designer")
        self.bob = add_user(self.db, "bob", "bob@x.com", role="viewer")

    def test_list_marks_admins(self) -> None:
        r = self.client.get("/api/users", headers=self.auth_header(self.boss))
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual(data["pagination"]["totalCount"], 3)
        flags = {u["username"]: u["isAdmin"] for u in data["users"]}
        self.assertEqual(flags, {"boss": True, "alice": False, "bob": False})

    def test_list_filters(self) -> None:
        r = self.client.get("/api/users?role=designer", headers=self.auth_header(self.boss))
        self.assertEqual([u["username"] for u in r.json()["users"]], ["alice"])
        r = self.client.get("/api/users?search=BO", headers=self.auth_header(self.boss))
        self.assertEqual(sorted(u["username"] for u in r.json()["users"]), ["bob", "boss"])
        self.assertEqual(r.json()["filters"]["search"], "BO")

    def test_stats(self) -> None:
        r = self.client.get("/api/users/stats", headers=self.auth_header(self.boss))
        self.assertEqual(r.status_code, 200)
        stats = r.json()["stats"]
        self.assertEqual(stats["totalUsers"], 3)
        self.assertEqual(stats["designers"], 1)
        self.assertEqual(stats["viewers"], 2)

    def test_get_user(self) -> None:
        r = self.client.get(f"/api/users/{self.alice.id}", headers=self.auth_header(self.boss))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["email"], "alice@x.com")
        r = self.client.get("/api/users/9999", headers=self.auth_header(self.boss))
        self.assertEqual(r.status_code, 404)

    def test_change_role(self) -> None:
        r = self.client.put(
            f"/api/users/{self.bob.id}/role",
            json={"role": "designer"},
            headers=self.auth_header(self.boss),
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["role"], "designer")

    def test_admin_role_cannot_change(self) -> None:
        r = self.client.put(
            f"/api/users/{self.boss.id}/role",
            json={"role": "designer"},
            headers=self.auth_header(self.boss),
        )
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.json(), {"error": "Cannot change admin user role!"})

    def test_deleted_admin_account(self) -> None:
        header = self.auth_header(self.boss)
        self.db.delete(self.boss)
        self.db.commit()
        r = self.client.get("/api/users", headers=header)
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json(), {"error": "Admin user not found!"})

    def test_non_admin_denied(self) -> None:
        r = self.client.get("/api/users/stats", headers=self.auth_header(self.alice))
        self.assertEqual(r.status_code, 403)


class TestAccountSelfService(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = add_user(self.db, "alice", "alice@x.com", role="designer")
        self.bob = add_user(self.db, "bob", "bob@x.com", role="viewer")

    def test_update_profile(self) -> None:
        r = self.client.put(
            "/api/users/profile",
            json={"username": "alice_w"},
            headers=self.auth_header(self.alice),
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["username"], "alice_w")

    def test_update_profile_conflict(self) -> None:
        r = self.client.put(
            "/api/users/profile",
            json={"email": "bob@x.com"},
            headers=self.auth_header(self.alice),
        )
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json(), {"error": "Email already taken!"})

    def test_update_profile_empty(self) -> None:
        r = self.client.put("/api/users/profile", json={}, headers=self.auth_header(self.alice))
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"error": "No valid fields to update!"})

    def test_change_password_wrong_current(self) -> None:
        r = self.client.put(
            "/api/users/change-password",
            json={
                "currentPassword": "Wr0ng!Pass",
                "newPassword": "N3w!Passw0rd",
                "confirmPassword": "N3w!Passw0rd",
            },
            headers=self.auth_header(self.alice),
        )
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json(), {"error": "Current password is incorrect!"})

    def test_change_password(self) -> None:
        r = self.client.put(
            "/api/users/change-password",
            json={
                "currentPassword": TEST_PASSWORD,
                "newPassword": "N3w!Passw0rd",
                "confirmPassword": "N3w!Passw0rd",
            },
            headers=self.auth_header(self.alice),
        )
        self.assertEqual(r.status_code, 200)
        login = self.client.post(
            "/api/auth/login",
            json={"email": "alice@x.com", "password": "N3w!Passw0rd"},
        )
        self.assertEqual(login.status_code, 200)

    def test_mismatched_confirmation(self) -> None:
        r = self.client.put(
            "/api/users/change-password",
            json={
                "currentPassword": TEST_PASSWORD,
                "newPassword": "N3w!Passw0rd",
                "confirmPassword": "N3w!Passw0rd2",
            },
            headers=self.auth_header(self.alice),
        )
        self.assertEqual(r.status_code, 400)

    def test_delete_account(self) -> None:
        r = self.client.delete("/api/users/account", headers=self.auth_header(self.bob))
        self.assertEqual(r.status_code, 200)
        with self.Session() as db:
            self.assertIsNone(db.query(User).filter(User.email == "bob@x.com").first())
