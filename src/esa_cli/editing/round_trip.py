"""Create and edit posts through an editor round trip.

    render -> open editor -> diff -> parse -> submit

No network call is made when the editor exits abnormally or the buffer is
left unchanged.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import structlog

from esa_cli.editing import post_text
from esa_cli.editing.session import EditingSession
from esa_cli.models.post import CreatedPost, EditedPostResult, Post, PostContent
from esa_cli.services.esa_client import EsaClient

logger = structlog.get_logger()


class RoundTripStatus(str, Enum):
    ABORTED = "aborted"      # editor exited non-zero; buffer discarded
    CANCELLED = "cancelled"  # buffer left identical to the pre-fill
    CHANGED = "changed"


@dataclass
class RoundTrip:
    """Outcome of one editor round trip.

    Attributes:
        status: What happened in the editor
        exit_status: Editor exit status
        content: Parsed content when status is CHANGED
    """
    status: RoundTripStatus
    exit_status: int
    content: Optional[PostContent] = None


def edit_text(session: EditingSession, initial_text: str) -> RoundTrip:
    """Run the editor on initial_text and parse the result if it changed.

    Raises:
        ProcessError: If the editor or scratch file fails
        ContentShapeError, EmptyTitleError: If the edited text cannot be parsed
    """
    exit_status = session.open(initial_text)
    if exit_status != 0:
        logger.warning("editor_aborted", exit_status=exit_status)
        return RoundTrip(RoundTripStatus.ABORTED, exit_status)

    edited = session.diff()
    if edited is None:
        logger.info("edit_cancelled")
        return RoundTrip(RoundTripStatus.CANCELLED, exit_status)

    content = post_text.parse(edited)
    logger.info("edit_parsed", name=content.name, category=content.category, tags=content.tags)
    return RoundTrip(RoundTripStatus.CHANGED, exit_status, content)


def create_post(
    client: EsaClient,
    session: EditingSession,
    wip: bool = True,
    message: Optional[str] = None,
) -> Tuple[RoundTrip, Optional[CreatedPost]]:
    """Open the blank template and create a post from what the user typed."""
    round_trip = edit_text(session, post_text.DEFAULT_TEMPLATE)
    if round_trip.status is not RoundTripStatus.CHANGED:
        return round_trip, None

    created = client.create_post(round_trip.content, wip=wip, message=message)
    return round_trip, created


def edit_post(
    client: EsaClient,
    session: EditingSession,
    number: int,
    wip: Optional[bool] = None,
    message: Optional[str] = None,
) -> Tuple[Post, RoundTrip, Optional[EditedPostResult]]:
    """Fetch a post, edit it, and submit the change with its original revision.

    Args:
        client: API client
        session: Editing session
        number: Post number
        wip: New wip flag; None keeps the post's current flag
        message: Optional change message

    Returns:
        (post as fetched, round trip outcome, edit result or None)
    """
    post = client.get_post(number)
    round_trip = edit_text(session, post_text.render_post(post))
    if round_trip.status is not RoundTripStatus.CHANGED:
        return post, round_trip, None

    edited = post.edit(
        round_trip.content,
        wip=post.wip if wip is None else wip,
        message=message,
    )
    result = client.edit_post(number, edited)
    return post, round_trip, result
