import hmac
from typing import Optional

from fastapi import Header

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import AuthenticationError


async def require_job_token(x_job_token: Optional[str] = Header(None)) -> None:
    """Operator-only routes (job triggers, payout failures) share one static token"""
    expected = settings.JOB_TRIGGER_TOKEN.get_secret_value()
    if not x_job_token or not hmac.compare_digest(x_job_token, expected):
        raise AuthenticationError('Invalid job token')
