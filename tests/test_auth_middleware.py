"""Tests for bearer token verification and the auth dependency."""

from unittest.mock import MagicMock

from app.core.identity import SupabaseIdentityProvider


class TestSupabaseIdentityProvider:
    def test_valid_token(self):
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=MagicMock(id="abc", email="a@b.co"))

        auth = SupabaseIdentityProvider(client).verify("token-1")

        assert auth.user_id == "abc"
        assert auth.email == "a@b.co"
        client.auth.get_user.assert_called_once_with("token-1")

    def test_auth_error_returns_none(self):
        client = MagicMock()
        client.auth.get_user.side_effect = Exception("invalid JWT")
        assert SupabaseIdentityProvider(client).verify("bad") is None

    def test_missing_user_returns_none(self):
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=None)
        assert SupabaseIdentityProvider(client).verify("bad") is None


class TestRequireAuth:
    def test_missing_token(self, client):
        response = client.get("/v1/captures")
        assert response.status_code == 401
        assert response.json() == {"error": "Authorization token required"}

    def test_invalid_token(self, client):
        response = client.get("/v1/captures", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_valid_token(self, client, auth_headers):
        response = client.get("/v1/captures", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"captures": []}
