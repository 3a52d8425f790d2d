from typing import Optional

from fastapi import Header

from src.platform.exception.exceptions import AuthenticationError


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Identity comes from the gateway in front of this service as an opaque
    ``X-User-Id`` header; this service never issues or checks credentials.
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError('Missing X-User-Id header')
    return x_user_id.strip()
