import hashlib
import hmac
import time
from typing import Callable, NamedTuple

SIGNATURE_LENGTH = 32

class SignedToken(NamedTuple):
    signature: str
    expires: str  # epoch milliseconds, as it travels in the query string

def _now_ms() -> int:
    return int(time.time() * 1000)

def _sign(video_id: str, expires: str, secret: str) -> str:
    mac = hmac.new(secret.encode(), f"{video_id}:{expires}".encode(), hashlib.sha256)
    return mac.hexdigest()[:SIGNATURE_LENGTH]

def mint(video_id: str, secret: str, ttl_seconds: int, *, now: Callable[[], int] = _now_ms) -> SignedToken:
    expires = str(now() + ttl_seconds * 1000)
    return SignedToken(signature=_sign(video_id, expires, secret), expires=expires)

def verify(video_id: str, signature: str | None, expires: str | None, secret: str, *, now: Callable[[], int] = _now_ms) -> bool:
    # malformed input of any kind is a failed check, never an exception
    if not video_id or not signature or not expires:
        return False
    if not (expires.isascii() and expires.isdigit()):
        return False
    if now() > int(expires):
        return False
    return hmac.compare_digest(_sign(video_id, expires, secret).encode(), signature.encode())
