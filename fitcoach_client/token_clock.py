"""
Token clock: when should the current access token be refreshed?
Reads the exp claim straight from the payload segment (the client never holds the signing key)
and turns it into a refresh delay with a safety buffer.
"""
import binascii
import json
import logging
import math
import time
from dataclasses import dataclass

from jwt.utils import base64url_decode

from fitcoach_client.config import REFRESH_BUFFER_SECONDS

logger = logging.getLogger(__name__)

REFRESH_BUFFER_MS = REFRESH_BUFFER_SECONDS * 1000


@dataclass(frozen=True)
class ExpiryResult:
    """Outcome of reading a token's expiry: an epoch-milliseconds timestamp, or the reason it is unknown."""

    expires_at_ms: int | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, expires_at_ms: int) -> "ExpiryResult":
        return cls(expires_at_ms=expires_at_ms)

    @classmethod
    def unknown(cls, reason: str) -> "ExpiryResult":
        return cls(reason=reason)

    @property
    def known(self) -> bool:
        return self.expires_at_ms is not None


def now_ms() -> int:
    return int(time.time() * 1000)


def _claims_of(token: str) -> dict:
    """Second segment of a compact token, base64url-decoded and parsed as JSON. The header is not read."""
    claims = json.loads(base64url_decode(token.split(".")[1]))
    if not isinstance(claims, dict):
        raise ValueError("claim set is not an object")
    return claims


def expiry_of(token: str | None) -> ExpiryResult:
    """
    Decode the claim set and return exp as epoch milliseconds.
    Malformed tokens, unparseable claims and missing, non-numeric or non-finite exp all yield an
    unknown result; never raises.
    """
    if not token or not isinstance(token, str):
        return ExpiryResult.unknown("empty token")
    if token.count(".") < 1:
        return ExpiryResult.unknown("not enough segments")
    try:
        claims = _claims_of(token)
    except (ValueError, TypeError, binascii.Error) as e:
        logger.debug("Could not decode token claims: %s", e)
        return ExpiryResult.unknown("undecodable claims")
    exp = claims.get("exp")
    if exp is None:
        return ExpiryResult.unknown("no exp claim")
    # bool is an int subclass; True is not an expiry
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return ExpiryResult.unknown("non-numeric exp claim")
    expires_at_ms = exp * 1000
    # json accepts NaN and Infinity, and a huge float overflows once scaled
    if isinstance(expires_at_ms, float) and not math.isfinite(expires_at_ms):
        return ExpiryResult.unknown("non-numeric exp claim")
    return ExpiryResult.ok(int(expires_at_ms))


def delay_until_refresh(expires_at_ms: int, buffer_ms: int = REFRESH_BUFFER_MS, now: int | None = None) -> int:
    """Milliseconds to wait before refreshing; floored at zero for tokens already inside the buffer."""
    if now is None:
        now = now_ms()
    return max(expires_at_ms - now - buffer_ms, 0)
