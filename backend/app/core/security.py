import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import bcrypt
from fastapi import HTTPException
from jose import jwt, JWTError
from redis import Redis

from app.core.config import settings
from app.core.logging import security_logger


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# Revoked token ids, kept until the token would have expired anyway
class InMemoryTokenDenylist:
    def __init__(self):
        self._revoked: Dict[str, float] = {}
        self._lock = threading.Lock()

    def revoke(self, jti: str, expires_at: float) -> None:
        with self._lock:
            self._revoked[jti] = expires_at

    def is_revoked(self, jti: str) -> bool:
        now = time.time()
        with self._lock:
            for expired in [key for key, expires_at in self._revoked.items() if expires_at <= now]:
                del self._revoked[expired]
            return jti in self._revoked


# Redis-backed denylist shared by all workers
class RedisTokenDenylist:
    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    def revoke(self, jti: str, expires_at: float) -> None:
        ttl = max(1, int(expires_at - time.time()))
        try:
            self.redis.setex(f"revoked-token:{jti}", ttl, "1")
        except Exception as e:
            security_logger.error("Redis token denylist error", error=str(e))
            _memory_denylist.revoke(jti, expires_at)

    def is_revoked(self, jti: str) -> bool:
        try:
            return bool(self.redis.exists(f"revoked-token:{jti}"))
        except Exception as e:
            security_logger.error("Redis token denylist error", error=str(e))
            return _memory_denylist.is_revoked(jti)


_memory_denylist = InMemoryTokenDenylist()
_redis_denylist: Optional[RedisTokenDenylist] = None


def setup_redis_token_denylist(redis_url: str) -> None:
    global _redis_denylist
    try:
        _redis_denylist = RedisTokenDenylist(Redis.from_url(redis_url, decode_responses=True))
        security_logger.info("Redis token denylist configured")
    except Exception as e:
        security_logger.warning("Failed to setup Redis token denylist, using in-memory fallback", error=str(e))


def get_token_denylist():
    return _redis_denylist if _redis_denylist else _memory_denylist


def _create_token(data: dict, expires_delta: timedelta, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": datetime.now(timezone.utc) + expires_delta,
        "type": token_type,
        "jti": uuid.uuid4().hex,
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived access token"""
    return _create_token(
        data,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
        "access",
    )


def create_refresh_token(data: dict) -> str:
    """Create a long-lived refresh token"""
    return _create_token(data, timedelta(days=settings.refresh_token_expire_days), "refresh")


def _decode(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def verify_token(token: str, credentials_exception: HTTPException, token_type: str = "access") -> str:
    """Decode a token and return its subject (the user's email)"""
    payload = _decode(token)
    if payload is None:
        raise credentials_exception

    email = payload.get("sub")
    if email is None or payload.get("type") != token_type:
        raise credentials_exception
    jti = payload.get("jti")
    if jti and get_token_denylist().is_revoked(jti):
        security_logger.warning("Revoked token presented", token_type=token_type)
        raise credentials_exception
    return email


def revoke_token(token: str) -> bool:
    """Deny a token for the rest of its lifetime; False if it is not a valid token"""
    payload = _decode(token)
    if payload is None or not payload.get("jti"):
        return False
    get_token_denylist().revoke(payload["jti"], float(payload["exp"]))
    return True


def token_subject(token: str) -> Optional[str]:
    """Subject of a well-signed, unexpired token, without any other checks"""
    payload = _decode(token)
    return payload.get("sub") if payload else None
