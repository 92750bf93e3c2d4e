"""
Access and ownership rules for ReadingNook.

The authentication provider is external; this module only works with the
identity it hands over. It provides:

    ActorContext: the authenticated caller, passed explicitly to every write.
    require_actor(actor) -> ActorContext
    ensure_owner(resource, actor, kind) -> resource
    apply_status_transition(current, new_status, new_emotion_tag, today) -> StatusChange
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Optional

from readingnook.core.errors import Forbidden, InvalidArgument, NotFound, Unauthenticated

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "사용자"

# Marks an emotion tag that was not sent at all (as opposed to "" or None).
UNSET: Any = object()


@dataclass(frozen=True)
class ActorContext:
    """
    Identity of the caller as forwarded by the authentication provider.

    Attributes:
        user_id (str): Stable user id.
        email (Optional[str]): Account email.
        full_name (Optional[str]): OAuth full name.
        nickname (Optional[str]): Explicitly chosen nickname.
    """
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    nickname: Optional[str] = None

    @property
    def display_name(self) -> str:
        """
        Best available display name: nickname, then full name, then email.

        Returns:
            str: Name used when a profile row has to be created for this user.
        """
        for candidate in (self.nickname, self.full_name, self.email):
            if candidate and candidate.strip():
                return candidate.strip()
        return DEFAULT_DISPLAY_NAME


def require_actor(actor: Optional[ActorContext]) -> ActorContext:
    """
    Checks that the operation is performed by an authenticated identity.

    Args:
        actor (Optional[ActorContext]): Caller resolved from the request, if any.

    Returns:
        ActorContext: The same actor.

    Raises:
        Unauthenticated: If there is no caller.
    """
    if actor is None or not actor.user_id:
        raise Unauthenticated()
    return actor


def ensure_owner(resource: Any, actor: ActorContext, kind: str = "resource") -> Any:
    """
    Checks that `actor` owns `resource` (compares `resource.user_id`).

    Args:
        resource: Loaded ORM object, or None if the target does not exist.
        actor (ActorContext): Authenticated caller.
        kind (str): Name used in log lines and error messages.

    Returns:
        The resource itself.

    Raises:
        NotFound: If the resource is None.
        Forbidden: If the resource belongs to another user.
    """
    if resource is None:
        raise NotFound(f"{kind} not found")
    if resource.user_id != actor.user_id:
        logger.warning(
            f"Unauthorized attempt: user {actor.user_id} tried to modify {kind} "
            f"{getattr(resource, 'id', '?')} owned by {resource.user_id}"
        )
        raise Forbidden()
    return resource


@dataclass(frozen=True)
class StatusChange:
    """Field values a library entry takes after a status transition."""
    status: str
    started_at: Optional[datetime.date]
    finished_at: Optional[datetime.date]
    emotion_tag: Optional[str]


def apply_status_transition(
    current: Any,
    new_status: str,
    new_emotion_tag: Any = UNSET,
    today: Optional[datetime.date] = None,
) -> StatusChange:
    """
    Computes the date side effects of moving a library entry to `new_status`.

    - reading: started_at is set to today only if it was not set.
    - finished: started_at is set to today if unset; finished_at is always today.
    - want: both dates are cleared.
    - An emotion tag that was sent (even "") overwrites the stored one; "" means no tag.

    Args:
        current: Object with started_at, finished_at and emotion_tag attributes.
        new_status (str): One of want, reading, finished.
        new_emotion_tag: New tag, or UNSET to keep the stored one.
        today (Optional[datetime.date]): Server date; defaults to date.today().

    Returns:
        StatusChange: The values to persist.

    Raises:
        InvalidArgument: If the status is unknown.
    """
    today = today or datetime.date.today()
    started_at = current.started_at
    finished_at = current.finished_at
    emotion_tag = current.emotion_tag

    if new_status == "reading":
        if not started_at:
            started_at = today
    elif new_status == "finished":
        if not started_at:
            started_at = today
        finished_at = today
    elif new_status == "want":
        started_at = None
        finished_at = None
    else:
        raise InvalidArgument(f"invalid status: {new_status}")

    if new_emotion_tag is not UNSET:
        emotion_tag = new_emotion_tag or None

    return StatusChange(
        status=new_status,
        started_at=started_at,
        finished_at=finished_at,
        emotion_tag=emotion_tag,
    )
