"""
Token Service

Issues and verifies the HS256 JWTs returned by the admin login.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(hours=4)


def issue_token(
    subject: str,
    permissions: List[str],
    secret: str,
    now: Optional[datetime] = None,
    lifetime: timedelta = DEFAULT_LIFETIME,
) -> tuple[str, datetime]:
    """
    Issue a signed JWT.

    Returns:
        Tuple of (token, expiry datetime in UTC)
    """
    now = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    expires_at = now + lifetime
    claims = {
        "sub": subject,
        "permissions": permissions,
        "iat": now,
        "exp": expires_at,
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM), expires_at


def verify_token(token: str, secret: str) -> Optional[dict]:
    """
    Verify a token's signature and expiry.

    Returns:
        The claims if valid, None otherwise
    """
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected invalid token: {e}")
        return None
