# JWT Utilities

from datetime import timedelta, datetime, timezone
from typing import Optional
from src.errors import InvalidToken
from src.config import Config
import jwt  # JSON Web Token implementation
import uuid
import logging

logger = logging.getLogger(__name__)

ACCESS_TOKEN_EXPIRY = timedelta(minutes=Config.ACCESS_TOKEN_EXPIRY_MINUTES)


def create_access_token(user_data: dict, expiry: Optional[timedelta] = None, refresh: bool = False) -> str:
    """Create a JWT for authentication.

    Args:
        user_data (dict): User information to encode in the token (user_uid, email, role)
        expiry (timedelta, optional): Custom lifetime. Defaults to ACCESS_TOKEN_EXPIRY
        refresh (bool, optional): Whether this is a refresh token. Defaults to False

    Returns:
        str: Encoded JWT token
    """
    payload = {
        'user': user_data,
        'exp': datetime.now(timezone.utc) + (expiry if expiry is not None else ACCESS_TOKEN_EXPIRY),
        'jti': str(uuid.uuid4()),  # Unique token identifier for the blocklist
        'refresh': refresh
    }

    token = jwt.encode(
        payload = payload,
        key = Config.JWT_SECRET,
        algorithm = Config.JWT_ALGORITHM
    )

    return token


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Raises:
        InvalidToken: if the token is empty, malformed, badly signed or expired
    """
    if not token:
        raise InvalidToken()

    try:
        return jwt.decode(
            jwt = token,
            key = Config.JWT_SECRET,
            algorithms = [Config.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise InvalidToken("Token has expired")
    except jwt.PyJWTError as e:
        logger.info(f"Rejected token: {e}")
        raise InvalidToken()
