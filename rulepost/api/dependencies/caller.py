"""Caller identity from request headers.

Authentication happens in front of this service; the gateway forwards the
verified identity as headers. Only the uid is mandatory here, the services
decide what a missing team or role means for each action.
"""

from fastapi import Header

from rulepost.domain.errors import UnauthenticatedError
from rulepost.domain.models.post import Caller


async def get_caller(
    x_user_id: str | None = Header(default=None),
    x_user_team: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Caller:
    """Build the Caller for the current request.

    Raises:
        UnauthenticatedError: No X-User-Id header was sent.
    """
    if not x_user_id:
        raise UnauthenticatedError("Missing caller identity.")
    return Caller(uid=x_user_id, team=x_user_team or "", role=x_user_role or None)
