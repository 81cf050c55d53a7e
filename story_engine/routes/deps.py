"""Request dependencies."""

from fastapi import Header, HTTPException


async def require_user(x_user_id: str | None = Header(default=None)) -> str:
    """Authenticated user id, supplied by the auth layer in front of the API."""
    if not x_user_id:
        raise HTTPException(401, "Not authenticated")
    return x_user_id
