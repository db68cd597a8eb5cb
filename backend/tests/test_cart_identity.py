"""
Cart identity: which cart a request is bound to.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from starlette.responses import Response

from app.core.config import settings
from app.core.security import create_access_token
from app.services.cart_identity import CartKey, resolve_cart_key

CART = "/api/v1/cart/"
COOKIE = settings.GUEST_CART_COOKIE


def _set_cookie_header(response) -> str:
    return (response.headers.get("set-cookie") or "").lower()


class TestCartKey:

    def test_user_filter(self):
        assert CartKey(user_id=7).as_filter() == {"user": 7}
        assert CartKey(user_id=7).is_guest is False

    def test_guest_filter(self):
        key = CartKey(guest_cart_id="abc")
        assert key.as_filter() == {"guestCartId": "abc"}
        assert key.is_guest is True


class TestResolveCartKey:

    def test_valid_token_wins_over_cookie(self, db_session, shopper, headers_for):
        response = Response()
        key = resolve_cart_key(db_session, headers_for(shopper)["Authorization"], "guest-1", response)

        assert key == CartKey(user_id=shopper.id)
        assert "set-cookie" not in response.headers

    def test_same_user_same_key(self, db_session, shopper, headers_for):
        first = resolve_cart_key(db_session, headers_for(shopper)["Authorization"], None, Response())
        second = resolve_cart_key(db_session, headers_for(shopper)["Authorization"], None, Response())
        assert first == second

    def test_existing_cookie_reused(self, db_session):
        response = Response()
        key = resolve_cart_key(db_session, None, "guest-1", response)

        assert key == CartKey(guest_cart_id="guest-1")
        assert "set-cookie" not in response.headers

    def test_new_guest_gets_cookie(self, db_session):
        response = Response()
        key = resolve_cart_key(db_session, None, None, response)

        assert key.is_guest
        assert len(key.guest_cart_id) == 24
        assert f"{COOKIE}={key.guest_cart_id}" in response.headers["set-cookie"]

    def test_fresh_ids_differ(self, db_session):
        first = resolve_cart_key(db_session, None, None, Response())
        second = resolve_cart_key(db_session, None, None, Response())
        assert first.guest_cart_id != second.guest_cart_id

    @pytest.mark.parametrize("authorization", [
        "Bearer not-a-jwt",
        "Basic dXNlcjpwYXNz",
        "Bearer ",
    ])
    def test_bad_authorization_falls_back_to_guest(self, db_session, authorization):
        response = Response()
        key = resolve_cart_key(db_session, authorization, None, response)

        assert key.is_guest
        assert COOKIE in response.headers["set-cookie"]

    def test_expired_token_falls_back_to_cookie(self, db_session, shopper):
        token = create_access_token({"sub": shopper.email}, expires_delta=timedelta(minutes=-5))
        key = resolve_cart_key(db_session, f"Bearer {token}", "guest-2", Response())
        assert key == CartKey(guest_cart_id="guest-2")

    def test_token_for_unknown_user_is_guest(self, db_session):
        token = create_access_token({"sub": "ghost@example.com"})
        key = resolve_cart_key(db_session, f"Bearer {token}", "guest-3", Response())
        assert key == CartKey(guest_cart_id="guest-3")

    def test_token_for_inactive_user_is_guest(self, db_session, shopper, headers_for):
        shopper.is_active = False
        db_session.commit()
        key = resolve_cart_key(db_session, headers_for(shopper)["Authorization"], "guest-4", Response())
        assert key == CartKey(guest_cart_id="guest-4")


class TestGuestCookieFlags:

    def test_development_cookie(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")
        response = Response()
        resolve_cart_key(db_session, None, None, response)

        header = _set_cookie_header(response)
        assert "httponly" in header
        assert "samesite=lax" in header
        assert "secure" not in header
        assert f"max-age={30 * 24 * 60 * 60}" in header

    def test_production_cookie(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        response = Response()
        resolve_cart_key(db_session, None, None, response)

        header = _set_cookie_header(response)
        assert "httponly" in header
        assert "secure" in header
        assert "samesite=none" in header
        assert f"max-age={30 * 24 * 60 * 60}" in header


class TestCartIdentityOverHttp:

    def test_guest_cookie_issued_then_reused(self, client: TestClient):
        first = client.get(CART)
        assert first.status_code == 200
        guest_id = first.cookies.get(COOKIE)
        assert guest_id
        assert first.json()["guest_cart_id"] == guest_id

        second = client.get(CART)
        assert second.json()["guest_cart_id"] == guest_id
        assert COOKIE not in (second.headers.get("set-cookie") or "")

    def test_authenticated_user_gets_user_cart(self, client: TestClient, shopper, shopper_headers):
        response = client.get(CART, headers=shopper_headers)

        assert response.json()["user_id"] == shopper.id
        assert response.json()["guest_cart_id"] is None
        assert "set-cookie" not in response.headers

    def test_invalid_token_is_not_an_error(self, client: TestClient):
        response = client.get(CART, headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200
        assert response.json()["user_id"] is None
        assert response.cookies.get(COOKIE)
