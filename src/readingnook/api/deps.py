"""
Request dependencies: database session and caller identity.

The authentication provider sits in front of this service and forwards the
verified identity as headers. Non-ASCII values (names) arrive percent-encoded.
"""

from typing import Any, Optional
from urllib.parse import unquote

from fastapi import Depends, Header, Request

from readingnook.core.errors import InvalidArgument
from readingnook.core.security import ActorContext, require_actor
from readingnook.db.session import get_db

__all__ = ["get_db", "get_actor", "get_current_actor", "read_target_id", "target_id"]


def _header_value(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = unquote(value).strip()
    return value or None


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_user_nickname: Optional[str] = Header(None),
) -> Optional[ActorContext]:
    """Caller identity, or None for anonymous requests."""
    user_id = _header_value(x_user_id)
    if not user_id:
        return None
    return ActorContext(
        user_id=user_id,
        email=_header_value(x_user_email),
        full_name=_header_value(x_user_name),
        nickname=_header_value(x_user_nickname),
    )


def get_current_actor(actor: Optional[ActorContext] = Depends(get_actor)) -> ActorContext:
    """Caller identity; raises Unauthenticated (401) for anonymous requests."""
    return require_actor(actor)


async def read_target_id(request: Request, *names: str) -> Any:
    """
    Looks up a target id in the JSON body, then in the query string, under any
    of `names`. Returns None when absent; the caller validates the value.
    """
    body: Any = None
    if await request.body():
        try:
            body = await request.json()
        except ValueError as e:
            raise InvalidArgument("요청 본문이 올바른 JSON이 아닙니다.") from e
    if isinstance(body, dict):
        for name in names:
            if body.get(name) is not None:
                return body[name]
    for name in names:
        value = request.query_params.get(name)
        if value is not None:
            return value
    return None


def target_id(*names: str):
    """Dependency factory: the raw target id read by read_target_id under `names`."""
    async def dependency(request: Request) -> Any:
        return await read_target_id(request, *names)
    return dependency
