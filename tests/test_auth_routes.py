"""
HTTP-level tests for /api/auth/*.
"""

from models import User


class TestRegister:
    def test_register_returns_201_and_token(self, client, db):
        response = client.post(
            "/api/auth/register",
            json={"name": "Ana", "email": "ana@x.com", "password": "s3nha"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"] == {"id": body["user"]["id"], "email": "ana@x.com", "name": "Ana"}
        assert "password" not in body["user"]
        assert db.query(User).filter(User.email == "ana@x.com").count() == 1

    def test_password_is_stored_hashed(self, client, db, hasher):
        client.post("/api/auth/register", json={"name": "Ana", "email": "ana@x.com", "password": "s3nha"})

        stored = db.query(User).filter(User.email == "ana@x.com").one()
        assert stored.password != "s3nha"
        assert hasher.verify("s3nha", stored.password)

    def test_duplicate_email(self, client, register_user):
        user = register_user(email="dup@x.com")

        response = client.post(
            "/api/auth/register",
            json={"name": "Other", "email": "dup@x.com", "password": "another"},
        )

        assert response.status_code == 409
        assert response.json() == {"detail": "Email already registered"}
        assert user["user"]["email"] == "dup@x.com"

    def test_invalid_payload(self, client):
        response = client.post("/api/auth/register", json={"name": "Ana", "email": "not-an-email", "password": "s3nha"})
        assert response.status_code == 422


class TestLogin:
    def test_login(self, client, register_user):
        user = register_user(email="login@x.com", password="s3nha")

        response = client.post("/api/auth/login", json={"email": "login@x.com", "password": "s3nha"})

        assert response.status_code == 200
        body = response.json()
        assert body["token"]
        assert body["user"] == user["user"]

    def test_unknown_email_and_wrong_password_look_the_same(self, client, register_user):
        register_user(email="known@x.com", password="s3nha")

        unknown = client.post("/api/auth/login", json={"email": "unknown@x.com", "password": "s3nha"})
        wrong = client.post("/api/auth/login", json={"email": "known@x.com", "password": "wrong"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"detail": "Invalid email or password"}

    def test_login_with_mixed_case_email(self, client):
        credentials = {"name": "Ana", "email": "Ana@Example.COM", "password": "s3nha"}

        registered = client.post("/api/auth/register", json=credentials)
        assert registered.status_code == 201
        assert registered.json()["user"]["email"] == "ana@example.com"

        login = client.post("/api/auth/login", json={"email": "Ana@Example.COM", "password": "s3nha"})

        assert login.status_code == 200
        assert login.json()["user"]["id"] == registered.json()["user"]["id"]

    def test_email_case_does_not_bypass_uniqueness(self, client, register_user):
        register_user(email="case@x.com")

        response = client.post(
            "/api/auth/register",
            json={"name": "Other", "email": "CASE@X.com", "password": "another"},
        )

        assert response.status_code == 409


class TestMe:
    def test_me(self, client, register_user):
        user = register_user(name="Ana", email="me@x.com")

        response = client.get("/api/auth/me", headers=user["headers"])

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == user["user"]["id"]
        assert body["email"] == "me@x.com"
        assert body["name"] == "Ana"
        assert "createdAt" in body
        assert "password" not in body

    def test_missing_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_token_for_missing_user(self, client, token_issuer):
        token = token_issuer.sign(4242)
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestRefresh:
    def test_refresh(self, client, register_user, token_issuer):
        user = register_user()

        response = client.post("/api/auth/refresh", json={"token": user["token"]})

        assert response.status_code == 200
        new_token = response.json()["token"]
        assert new_token != user["token"]
        assert token_issuer.verify(new_token) == user["user"]["id"]

    def test_refresh_malformed(self, client):
        response = client.post("/api/auth/refresh", json={"token": "um.token.qualquer.invalido"})
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid or expired token"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
