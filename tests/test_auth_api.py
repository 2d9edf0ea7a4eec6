import tempfile
import time
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from jose import jwt

from backend.app.core.settings import settings
from backend.app.main import create_app
from support import ACCESS_SECRET, FakeClock, make_issuer


def cleared(response, name: str) -> bool:
    return any(
        header.startswith(f"{name}=") and "Max-Age=0" in header
        for header in response.headers.get_list("set-cookie")
    )


class APITestCase(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.issuer = make_issuer(clock=self.clock)
        self.client = TestClient(create_app(self.issuer))
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def login(self, **extra):
        body = {"username": "user1", "password": "password1", **extra}
        return self.client.post("/login", json=body)


class TestLogin(APITestCase):

    def test_login_sets_cookies_and_returns_user(self):
        response = self.login()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["user"], {"id": 1, "username": "user1", "name": "User One"})
        self.assertEqual(body["accessTokenMaxAge"], 15)
        self.assertEqual(body["message"], "Login successful")
        self.assertNotIn("accessToken", body)

        self.assertIn("accessToken", self.client.cookies)
        refresh = self.client.cookies["refreshToken"]
        self.assertIn(refresh, self.issuer.store.refresh_tokens())

        set_cookies = " ".join(response.headers.get_list("set-cookie"))
        self.assertIn("HttpOnly", set_cookies)
        self.assertIn("SameSite=strict", set_cookies)
        self.assertIn(f"Max-Age={7 * 24 * 60 * 60}", set_cookies)

    def test_access_cookie_claims_match_user(self):
        self.login()
        claims = jwt.decode(self.client.cookies["accessToken"], ACCESS_SECRET, algorithms=["HS256"])
        self.assertEqual((claims["id"], claims["username"], claims["name"]), (1, "user1", "User One"))

    def test_invalid_credentials(self):
        response = self.client.post("/login", json={"username": "user1", "password": "wrong"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "InvalidCredentials")

        response = self.client.post("/login", json={"username": "ghost", "password": "password1"})
        self.assertEqual(response.status_code, 401)

    def test_missing_fields(self):
        for body in ({}, {"username": "user1"}, {"username": "", "password": "password1"}):
            with self.subTest(body=body):
                response = self.client.post("/login", json=body)
                self.assertEqual(response.status_code, 400)

    def test_invalid_durations(self):
        for value in (0, -5, 61):
            with self.subTest(value=value):
                response = self.login(accessTokenMaxAge=value)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["error"], "InvalidDuration")

        for value in ("abc", 1.5):
            with self.subTest(value=value):
                self.assertEqual(self.login(accessTokenMaxAge=value).status_code, 400)

        self.assertEqual(self.issuer.store.refresh_tokens(), [])

    def test_header_transport_returns_token(self):
        with patch.object(settings, "TOKEN_TRANSPORT", "header"):
            response = self.login(accessTokenMaxAge=5)
        body = response.json()
        self.assertEqual(body["accessTokenMaxAge"], 5)
        self.assertIn("accessToken", body)
        self.assertNotIn("accessToken", self.client.cookies)
        self.assertIn("refreshToken", self.client.cookies)


class TestProtectedRoutes(APITestCase):

    def test_me_with_cookie(self):
        self.login()
        response = self.client.get("/me")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"user": {"id": 1, "username": "user1", "name": "User One"}})

    def test_me_with_bearer_header(self):
        with patch.object(settings, "TOKEN_TRANSPORT", "header"):
            token = self.login().json()["accessToken"]
        response = self.client.get("/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["username"], "user1")

    def test_me_unauthenticated(self):
        response = self.client.get("/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Unauthenticated")

    def test_me_invalid_token(self):
        response = self.client.get("/me", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "InvalidToken")

    def test_protected_route(self):
        self.login()
        response = self.client.get("/protected")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "This is a protected route")

    def test_root(self):
        self.assertEqual(self.client.get("/").status_code, 200)


class TestRefresh(APITestCase):

    def test_refresh_rotates_cookies(self):
        self.login()
        old_refresh = self.client.cookies["refreshToken"]

        response = self.client.post("/refresh-token")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Token refreshed successfully")

        new_refresh = self.client.cookies["refreshToken"]
        self.assertNotEqual(old_refresh, new_refresh)
        tokens = self.issuer.store.refresh_tokens()
        self.assertNotIn(old_refresh, tokens)
        self.assertIn(new_refresh, tokens)

    def test_refresh_without_cookie(self):
        response = self.client.post("/refresh-token")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Unauthenticated")

    def test_refresh_with_revoked_token(self):
        self.login()
        refresh = self.client.cookies["refreshToken"]
        self.issuer.revoke(refresh)
        response = self.client.post("/refresh-token")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "InvalidToken")

    def test_refresh_invalid_duration(self):
        self.login()
        refresh = self.client.cookies["refreshToken"]
        response = self.client.post("/refresh-token", json={"accessTokenMaxAge": 0})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "InvalidDuration")
        self.assertIn(refresh, self.issuer.store.refresh_tokens())

    def test_expired_refresh_token_clears_cookies(self):
        self.clock.rewind(8 * 24 * 60 * 60)
        self.login()
        self.clock.reset()
        refresh = self.client.cookies["refreshToken"]

        response = self.client.post("/refresh-token")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "TokenExpired")
        self.assertTrue(cleared(response, "accessToken"))
        self.assertTrue(cleared(response, "refreshToken"))
        self.assertNotIn(refresh, self.issuer.store.refresh_tokens())

    def test_short_lived_access_token_scenario(self):
        # Login 61 seconds in the past with a one minute access token
        self.clock.rewind(61)
        self.assertEqual(self.login(accessTokenMaxAge=1).status_code, 200)
        self.clock.reset()
        old_refresh = self.client.cookies["refreshToken"]

        response = self.client.get("/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "TokenExpired")

        rotated_at = time.time()
        response = self.client.post("/refresh-token", json={"accessTokenMaxAge": 1})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["accessTokenMaxAge"], 1)

        claims = jwt.decode(self.client.cookies["accessToken"], ACCESS_SECRET, algorithms=["HS256"])
        self.assertAlmostEqual(claims["exp"], rotated_at + 60, delta=5)
        self.assertNotIn(old_refresh, self.issuer.store.refresh_tokens())
        self.assertEqual(self.client.get("/me").status_code, 200)


class TestLogout(APITestCase):

    def test_logout_without_cookie(self):
        response = self.client.post("/logout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Logged out successfully"})
        self.assertTrue(cleared(response, "accessToken"))
        self.assertTrue(cleared(response, "refreshToken"))

    def test_logout_revokes_refresh_token(self):
        self.login()
        refresh = self.client.cookies["refreshToken"]

        response = self.client.post("/logout")
        self.assertEqual(response.status_code, 200)
        self.assertNotIn(refresh, self.issuer.store.refresh_tokens())
        self.assertEqual(self.client.post("/refresh-token").status_code, 401)


class TestDefaultStartup(unittest.TestCase):

    def test_lifespan_builds_store_and_seeds_demo_users(self):
        db_path = f"{tempfile.mkdtemp(prefix='tokendemo-app-')}/db.json"
        with patch.object(settings, "DB_PATH", db_path), patch.object(settings, "STORE_BACKEND", "json"):
            with TestClient(create_app()) as client:
                response = client.post("/login", json={"username": "user2", "password": "password2"})
                self.assertEqual(response.status_code, 200)
                self.assertEqual(response.json()["user"]["name"], "User Two")
                self.assertEqual(len(client.app.state.issuer.store.refresh_tokens()), 1)


if __name__ == "__main__":
    unittest.main()
