"""Caller identification dependency.

Authentication is handled upstream; the Order Store only needs to know
which party is calling so it can derive the transition actor.
"""

from typing import Annotated

from fastapi import Header

from src.md_common.errors import MissingCallerError


async def get_caller_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> str:
    """FastAPI dependency: returns the caller's user id from the X-User-Id header."""
    if x_user_id is None or not x_user_id.strip():
        raise MissingCallerError()
    return x_user_id.strip()
