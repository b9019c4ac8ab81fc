from .jwt_token_codec import JWTTokenCodec
from .signing_key import SigningKey

__all__ = ["JWTTokenCodec", "SigningKey"]
