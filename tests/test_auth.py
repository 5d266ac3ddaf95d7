"""
Tests for signup, login, token handling and admin bootstrap.
"""
from datetime import timedelta

import pytest

from auth import decode_token, ensure_admin_user, token_for_user, verify_password
from database import USER
from errors import AuthError


class TestAuthEndpoints:
    def test_signup_login_me(self, client):
        signup = client.post(
            "/api/auth/signup", json={"name": "Neha", "email": "Neha@gmail.com", "password": "secret123"}
        )
        assert signup.status_code == 201
        body = signup.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == "user"
        assert "password" not in body["user"]

        login = client.post("/api/auth/login", json={"email": "neha@gmail.com", "password": "secret123"})
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "neha@gmail.com"

    def test_duplicate_signup(self, client):
        body = {"name": "Neha", "email": "neha@gmail.com", "password": "secret123"}
        client.post("/api/auth/signup", json=body)
        response = client.post("/api/auth/signup", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Email already registered"}

    def test_bad_password(self, client):
        client.post("/api/auth/signup", json={"name": "Neha", "email": "neha@gmail.com", "password": "secret123"})
        response = client.post("/api/auth/login", json={"email": "neha@gmail.com", "password": "wrong"})
        assert response.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401


class TestTokens:
    def test_token_claims(self, admin_user):
        payload = decode_token(token_for_user(admin_user))
        assert payload["sub"] == str(admin_user["_id"])
        assert payload["role"] == "admin"
        assert "exp" in payload

    def test_expired_token(self, admin_user):
        token = token_for_user(admin_user, expires_delta=timedelta(seconds=-10))
        with pytest.raises(AuthError):
            decode_token(token)

    def test_token_for_deleted_user(self, client, store, regular_user):
        token = token_for_user(regular_user)
        store.delete_document(USER, regular_user["_id"])
        response = client.get("/api/notification", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestAdminBootstrap:
    def test_creates_admin(self, store):
        user = ensure_admin_user(store, "Root@alumni.edu", "changeme")
        assert user["role"] == "admin"
        assert user["email"] == "root@alumni.edu"
        assert verify_password("changeme", user["password"])

    def test_promotes_existing(self, store, make_user):
        make_user("user", email="boss@alumni.edu")
        user = ensure_admin_user(store, "boss@alumni.edu", "whatever")
        assert user["role"] == "admin"
        assert store.count(USER, {"email": "boss@alumni.edu"}) == 1
