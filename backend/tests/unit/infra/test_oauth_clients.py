"""Unit tests for the Naver and Kakao OAuth clients (HTTP mocked with ``responses``)."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest
import requests
import responses
from advent_auth.infra.oauth import KakaoOAuthClient, NaverOAuthClient, OAuthProviderSettings
from advent_auth.services._shared.errors import (
    FederationError,
    FederationProfileError,
    FederationTokenError,
)
from responses import matchers

NAVER_TOKEN = "https://nid.naver.com/oauth2.0/token"
NAVER_ME = "https://openapi.naver.com/v1/nid/me"
KAKAO_TOKEN = "https://kauth.kakao.com/oauth/token"
KAKAO_ME = "https://kapi.kakao.com/v2/user/me"


@pytest.fixture
def settings():
    return OAuthProviderSettings(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost/callback",
        timeout=3,
    )


@pytest.fixture
def naver(settings):
    return NaverOAuthClient(settings)


@pytest.fixture
def kakao(settings):
    return KakaoOAuthClient(settings)


def test_settings_repr_hides_secret(settings):
    assert "client-secret" not in repr(settings)


class TestAuthorizationUrl:
    def test_naver(self, naver):
        url = urlsplit(naver.authorization_url("st-1"))
        query = parse_qs(url.query)

        assert f"{url.scheme}://{url.netloc}{url.path}" == "https://nid.naver.com/oauth2.0/authorize"
        assert query == {
            "response_type": ["code"],
            "client_id": ["client-id"],
            "redirect_uri": ["http://localhost/callback"],
            "state": ["st-1"],
        }

    def test_kakao(self, kakao):
        url = urlsplit(kakao.authorization_url("st-2"))
        assert url.netloc == "kauth.kakao.com"
        assert parse_qs(url.query)["state"] == ["st-2"]


class TestNaver:
    @responses.activate
    def test_exchange_code_posts_form(self, naver):
        responses.post(
            NAVER_TOKEN,
            json={"access_token": "nv-at", "token_type": "bearer"},
            match=[
                matchers.urlencoded_params_matcher(
                    {
                        "grant_type": "authorization_code",
                        "client_id": "client-id",
                        "client_secret": "client-secret",
                        "code": "the-code",
                        "state": "st-1",
                    }
                )
            ],
        )
        assert naver.exchange_code("the-code", "st-1") == "nv-at"

    @responses.activate
    def test_token_response_without_access_token(self, naver):
        responses.post(NAVER_TOKEN, json={"error": "invalid_request"})
        with pytest.raises(FederationTokenError):
            naver.exchange_code("bad", "st")

    @responses.activate
    def test_token_endpoint_error_status(self, naver):
        responses.post(NAVER_TOKEN, json={"error": "server"}, status=500)
        with pytest.raises(FederationError):
            naver.exchange_code("code", "st")

    @responses.activate
    def test_transport_failure(self, naver):
        responses.post(NAVER_TOKEN, body=requests.ConnectionError("boom"))
        with pytest.raises(FederationError):
            naver.exchange_code("code", "st")

    @responses.activate
    def test_non_json_body(self, naver):
        responses.post(NAVER_TOKEN, body="<html>oops</html>", content_type="text/html")
        with pytest.raises(FederationError):
            naver.exchange_code("code", "st")

    @responses.activate
    def test_fetch_profile_reads_response_envelope(self, naver):
        responses.get(
            NAVER_ME,
            json={
                "resultcode": "00",
                "response": {
                    "id": "nv-123",
                    "email": "kim@naver.test",
                    "name": "Kim",
                    "nickname": "kimmy",
                    "profile_image": "https://img.test/kim.png",
                },
            },
            match=[matchers.header_matcher({"Authorization": "Bearer nv-at"})],
        )
        profile = naver.fetch_profile("nv-at")

        assert profile.provider == "NAVER"
        assert profile.provider_id == "nv-123"
        assert profile.email == "kim@naver.test"
        assert profile.display_name == "Kim"
        assert profile.avatar_url == "https://img.test/kim.png"

    @responses.activate
    def test_profile_falls_back_to_nickname_then_guest(self, naver):
        responses.get(NAVER_ME, json={"response": {"id": "1", "nickname": "nick"}})
        responses.get(NAVER_ME, json={"response": {"id": "2"}})

        assert naver.fetch_profile("at").display_name == "nick"
        second = naver.fetch_profile("at")
        assert second.display_name == "guest"
        assert second.email is None

    @responses.activate
    def test_profile_name_is_truncated(self, naver):
        responses.get(NAVER_ME, json={"response": {"id": "1", "name": "x" * 80}})
        assert len(naver.fetch_profile("at").display_name) == 50

    @responses.activate
    def test_profile_without_id(self, naver):
        responses.get(NAVER_ME, json={"response": {"email": "a@b.c"}})
        with pytest.raises(FederationProfileError):
            naver.fetch_profile("at")

    @responses.activate
    def test_empty_profile(self, naver):
        responses.get(NAVER_ME, json={})
        with pytest.raises(FederationProfileError):
            naver.fetch_profile("at")

    @responses.activate
    def test_profile_unauthorized(self, naver):
        responses.get(NAVER_ME, json={"resultcode": "024"}, status=401)
        with pytest.raises(FederationError):
            naver.fetch_profile("expired")


class TestKakao:
    @responses.activate
    def test_exchange_code_sends_redirect_uri(self, kakao):
        responses.post(
            KAKAO_TOKEN,
            json={"access_token": "kk-at"},
            match=[
                matchers.urlencoded_params_matcher(
                    {
                        "grant_type": "authorization_code",
                        "client_id": "client-id",
                        "client_secret": "client-secret",
                        "redirect_uri": "http://localhost/callback",
                        "code": "c0de",
                    }
                )
            ],
        )
        assert kakao.exchange_code("c0de", "st") == "kk-at"

    @responses.activate
    def test_fetch_profile_reads_kakao_account(self, kakao):
        responses.get(
            KAKAO_ME,
            json={
                "id": 987654321,
                "kakao_account": {
                    "email": "lee@kakao.test",
                    "profile": {
                        "nickname": "Lee",
                        "profile_image_url": "https://img.test/lee.png",
                    },
                },
            },
        )
        profile = kakao.fetch_profile("kk-at")

        assert profile.provider == "KAKAO"
        assert profile.provider_id == "987654321"
        assert profile.email == "lee@kakao.test"
        assert profile.display_name == "Lee"
        assert profile.avatar_url == "https://img.test/lee.png"

    @responses.activate
    def test_profile_without_account_details(self, kakao):
        responses.get(KAKAO_ME, json={"id": 42})
        profile = kakao.fetch_profile("kk-at")

        assert profile.provider_id == "42"
        assert profile.email is None
        assert profile.display_name == "guest"

    @responses.activate
    def test_profile_without_id(self, kakao):
        responses.get(KAKAO_ME, json={"kakao_account": {"email": "x@y.z"}})
        with pytest.raises(FederationProfileError):
            kakao.fetch_profile("kk-at")
