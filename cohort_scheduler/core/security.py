# cohort_scheduler/core/security.py
import secrets
from typing import Optional

from fastapi import Request

from cohort_scheduler.core.config import settings
from cohort_scheduler.core.errors import AuthenticationError
from cohort_scheduler.core.logging import logger


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def verify_cron_secret(authorization: Optional[str], expected: Optional[str]) -> None:
    """Raise AuthenticationError unless the header carries the expected secret.

    With no secret configured every caller is accepted.
    """
    if not expected:
        return
    token = extract_bearer_token(authorization)
    if token is None or not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning("Rejected batch trigger with missing or invalid bearer secret")
        raise AuthenticationError()


async def require_cron_secret(request: Request) -> None:
    """FastAPI dependency guarding the batch trigger."""
    verify_cron_secret(request.headers.get("Authorization"), settings.CRON_SECRET)
