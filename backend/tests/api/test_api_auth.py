"""End-to-end tests for the ``/api/v1/auth`` endpoints."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest
from advent_auth.services._shared.ports import (
    FederationProfile,
    StubFederationClient,
    TokenKind,
)
from tests.factories.identity import IdentityFactory

KIM = FederationProfile(
    provider="NAVER", provider_id="nv-kim", email="kim@naver.test", display_name="Kim"
)
LEE = FederationProfile(provider="KAKAO", provider_id="42", email=None, display_name="Lee")


@pytest.fixture(autouse=True)
def providers(components, monkeypatch):
    """Replace the real provider clients with scripted ones."""
    naver = StubFederationClient(provider="NAVER", codes={"kim-code": KIM, "kim-again": KIM})
    kakao = StubFederationClient(provider="KAKAO", codes={"lee-code": LEE})
    monkeypatch.setitem(components.clients, "NAVER", naver)
    monkeypatch.setitem(components.clients, "KAKAO", kakao)
    return {"naver": naver, "kakao": kakao}


def _set_cookies(resp) -> dict[str, str]:
    """Map cookie name to its raw ``Set-Cookie`` header."""
    return {h.split("=", 1)[0]: h for h in resp.headers.getlist("Set-Cookie")}


def _is_cleared(header: str) -> bool:
    return "Max-Age=0" in header or "Expires=Thu, 01 Jan 1970" in header


def _callback(client, provider: str, code: str):
    login = client.get(f"/api/v1/auth/{provider}")
    state = parse_qs(urlsplit(login.headers["Location"]).query)["state"][0]
    return client.get(f"/api/v1/auth/oauth/{provider}/callback?code={code}&state={state}")


def _register(client, name: str = "Kim", color: str = "red"):
    _callback(client, "naver", "kim-code")
    return client.post("/api/v1/auth/users", json={"name": name, "color": color})


# ------------------------------- Login ------------------------------------ #
def test_login_redirects_to_provider(client, components):
    resp = client.get("/api/v1/auth/naver")

    assert resp.status_code == 302
    location = resp.headers["Location"]
    assert location.startswith("https://provider.test/authorize?")
    state = parse_qs(urlsplit(location).query)["state"][0]
    assert components.login_states.consume(state) == "NAVER"


def test_login_unknown_provider(client):
    resp = client.get("/api/v1/auth/google")

    assert resp.status_code == 404
    assert resp.mimetype == "application/problem+json"
    assert resp.get_json()["code"] == "not_found"


# ------------------------------ Callback ---------------------------------- #
def test_new_person_lands_on_registration_page(client):
    resp = _callback(client, "naver", "kim-code")

    assert resp.status_code == 302
    assert resp.headers["Location"] == "http://frontend.test/new"
    header = _set_cookies(resp)["tempToken"]
    assert "HttpOnly" in header
    assert "Max-Age=300" in header
    assert "Path=/" in header
    assert "SameSite=Lax" in header
    assert _is_cleared(_set_cookies(resp)["accessToken"])
    assert _is_cleared(_set_cookies(resp)["refreshToken"])
    assert client.get_cookie("tempToken") is not None


def test_new_account_replaces_signed_in_session(client):
    assert _register(client).status_code == 201

    resp = _callback(client, "kakao", "lee-code")

    assert resp.headers["Location"] == "http://frontend.test/new"
    assert client.get_cookie("accessToken") is None
    assert client.get_cookie("refreshToken") is None
    registered = client.post("/api/v1/auth/users", json={"name": "Lee", "color": "navy"})
    assert registered.status_code == 201


def test_active_person_lands_on_share_page(client, session, components):
    identity = IdentityFactory(active=True, provider_id=KIM.provider_id)
    session.commit()
    share_id, identity_id = identity.share_id, identity.id

    resp = _callback(client, "naver", "kim-code")

    assert resp.status_code == 302
    assert resp.headers["Location"] == f"http://frontend.test/{share_id}"
    cookies = _set_cookies(resp)
    assert "Max-Age=3600" in cookies["accessToken"]
    assert f"Max-Age={30 * 24 * 3600}" in cookies["refreshToken"]
    assert _is_cleared(cookies["tempToken"])
    record = components.refresh_store.find_by_token(client.get_cookie("refreshToken").value)
    assert record is not None and record.user_id == identity_id


@pytest.mark.parametrize(
    ("query", "code"),
    [
        ("code=kim-code&state=forged", "login_state_mismatch"),
        ("code=kim-code", "login_state_mismatch"),
        ("error=access_denied&error_description=cancelled", "federation_error"),
    ],
)
def test_callback_failures_redirect_to_error_page(client, query, code):
    resp = client.get(f"/api/v1/auth/oauth/naver/callback?{query}")

    assert resp.status_code == 302
    assert resp.headers["Location"] == f"http://frontend.test/auth/error?code={code}"
    assert "tempToken" not in _set_cookies(resp)


def test_callback_with_rejected_code(client):
    resp = _callback(client, "naver", "bogus")
    assert resp.headers["Location"] == "http://frontend.test/auth/error?code=federation_token_error"


def test_callback_with_state_for_other_provider(client):
    login = client.get("/api/v1/auth/kakao")
    state = parse_qs(urlsplit(login.headers["Location"]).query)["state"][0]

    resp = client.get(f"/api/v1/auth/oauth/naver/callback?code=kim-code&state={state}")

    assert resp.headers["Location"].endswith("code=login_state_mismatch")


# ---------------------------- Registration -------------------------------- #
def test_registration_completes_session(client):
    resp = _register(client, name="  Kimmy ", color="yellow")

    assert resp.status_code == 201
    share_id = resp.get_json()["data"]["share_id"]
    assert share_id
    cookies = _set_cookies(resp)
    assert _is_cleared(cookies["tempToken"])
    assert "HttpOnly" in cookies["accessToken"]
    assert "HttpOnly" in cookies["refreshToken"]

    me = client.get("/api/v1/auth/me")
    assert me.status_code == 200
    data = me.get_json()["data"]
    assert data["name"] == "Kimmy"
    assert data["color"] == "yellow"
    assert data["share_id"] == share_id
    assert data["state"] == "ACTIVE"
    assert data["email"] == "kim@naver.test"


def test_registration_requires_a_token(client):
    resp = client.post("/api/v1/auth/users", json={"name": "Kim", "color": "red"})

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "unauthorized"


def test_registration_rejects_access_tokens(client, codec):
    token = codec.issue(TokenKind.ACCESS, 1, {"provider": "NAVER"})
    resp = client.post(
        "/api/v1/auth/users",
        json={"name": "Kim", "color": "red"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 403


@pytest.mark.parametrize(
    ("body", "field"),
    [
        ({"name": "x" * 11, "color": "red"}, "name"),
        ({"name": "   ", "color": "red"}, "name"),
        ({"name": "Kim", "color": "teal"}, "color"),
        ({"color": "red"}, "name"),
    ],
)
def test_registration_validates_body(client, body, field):
    _callback(client, "naver", "kim-code")

    resp = client.post("/api/v1/auth/users", json=body)

    assert resp.status_code == 422
    problem = resp.get_json()
    assert problem["code"] == "validation_error"
    assert field in problem["details"]["errors"]


def test_registration_twice_conflicts(client, session, codec):
    identity = IdentityFactory(active=True)
    session.commit()
    temp = codec.issue(TokenKind.TEMP, identity.id, {"provider": "NAVER"})

    resp = client.post(
        "/api/v1/auth/users",
        json={"name": "Again", "color": "blue"},
        headers={"Authorization": f"Bearer {temp}"},
    )

    assert resp.status_code == 409
    assert resp.get_json()["code"] == "conflict"


def test_expired_temp_token_is_anonymous(client, clock):
    _callback(client, "naver", "kim-code")
    clock.advance(301)

    resp = client.post("/api/v1/auth/users", json={"name": "Kim", "color": "red"})
    assert resp.status_code == 401


# -------------------------------- /me ------------------------------------- #
def test_me_rejects_temp_tokens(client):
    _callback(client, "naver", "kim-code")
    assert client.get("/api/v1/auth/me").status_code == 403


def test_me_ignores_refresh_cookie(client):
    _register(client)
    client.delete_cookie("accessToken")

    assert client.get("/api/v1/auth/me").status_code == 401


def test_me_accepts_bearer_header(client, session, codec):
    identity = IdentityFactory(active=True)
    session.commit()
    identity_id = identity.id
    token = codec.issue(TokenKind.ACCESS, identity_id, {"provider": "NAVER"})

    resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["id"] == identity_id


# ------------------------------ Refresh ----------------------------------- #
def test_refresh_sets_new_access_cookie(client, clock):
    _register(client)
    before = client.get_cookie("accessToken").value
    clock.advance(120)

    resp = client.post("/api/v1/auth/refresh")

    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"expires_in": 3600, "rotated": False}
    assert "accessToken" in _set_cookies(resp)
    assert "refreshToken" not in _set_cookies(resp)
    assert client.get_cookie("accessToken").value != before


def test_refresh_without_cookie(client):
    resp = client.post("/api/v1/auth/refresh")
    assert resp.status_code == 401


def test_refresh_with_expired_token(client, clock, components):
    _register(client)
    token = client.get_cookie("refreshToken").value
    clock.advance(30 * 24 * 3600 + 1)

    resp = client.post("/api/v1/auth/refresh")

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "expired"
    assert components.refresh_store.find_by_token(token) is None


def test_refresh_with_access_token(client):
    _register(client)
    client.set_cookie("refreshToken", client.get_cookie("accessToken").value)

    resp = client.post("/api/v1/auth/refresh")

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "unauthorized"


def test_refresh_after_record_removed(client, components):
    _register(client)
    components.refresh_store.delete_by_token(client.get_cookie("refreshToken").value)

    resp = client.post("/api/v1/auth/refresh")

    assert resp.status_code == 404


# ------------------------------- Logout ----------------------------------- #
def test_logout_clears_cookies_and_record(client, components):
    _register(client)
    token = client.get_cookie("refreshToken").value

    resp = client.post("/api/v1/auth/logout")

    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"logged_out": True}
    cookies = _set_cookies(resp)
    assert all(_is_cleared(cookies[name]) for name in ("accessToken", "refreshToken", "tempToken"))
    assert components.refresh_store.find_by_token(token) is None
    assert client.post("/api/v1/auth/refresh").status_code == 401


def test_logout_without_session(client):
    assert client.post("/api/v1/auth/logout").status_code == 200


def test_revoked_refresh_token_is_refused(client, components):
    _register(client)
    token = client.get_cookie("refreshToken").value
    client.post("/api/v1/auth/logout")
    client.set_cookie("refreshToken", token)

    resp = client.post("/api/v1/auth/refresh")

    assert resp.status_code == 404
