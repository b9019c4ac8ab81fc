from .base import OAuthClient, OAuthProviderSettings
from .kakao import KakaoOAuthClient
from .naver import NaverOAuthClient

__all__ = ["KakaoOAuthClient", "NaverOAuthClient", "OAuthClient", "OAuthProviderSettings"]
