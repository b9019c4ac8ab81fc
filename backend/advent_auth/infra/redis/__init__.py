from .redis_login_state_store import RedisLoginStateStore
from .redis_refresh_token_store import RedisRefreshTokenStore

__all__ = ["RedisLoginStateStore", "RedisRefreshTokenStore"]
