"""Content domain rules: lifecycle status, review transitions, excerpts."""
import re
from enum import Enum

from .errors import InvalidTransitionError
from .user import UserRole


class ContentStatus(str, Enum):
    """Content lifecycle status shared by chapters and topics."""
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class WorkflowAction(str, Enum):
    """Review workflow actions on a topic."""
    SUBMIT_REVIEW = "submit_review"
    APPROVE = "approve"
    PUBLISH = "publish"
    REJECT = "reject"
    ARCHIVE = "archive"


ANY_STATUS = frozenset(ContentStatus)

# action -> (statuses it is legal from, resulting status).
# Reject and archive carry no precondition.
TRANSITIONS: dict[WorkflowAction, tuple[frozenset[ContentStatus], ContentStatus]] = {
    WorkflowAction.SUBMIT_REVIEW: (
        frozenset({ContentStatus.DRAFT}),
        ContentStatus.IN_REVIEW,
    ),
    WorkflowAction.APPROVE: (
        frozenset({ContentStatus.IN_REVIEW}),
        ContentStatus.APPROVED,
    ),
    WorkflowAction.PUBLISH: (
        frozenset({ContentStatus.APPROVED, ContentStatus.DRAFT}),
        ContentStatus.PUBLISHED,
    ),
    WorkflowAction.REJECT: (
        ANY_STATUS,
        ContentStatus.DRAFT,
    ),
    WorkflowAction.ARCHIVE: (
        ANY_STATUS,
        ContentStatus.ARCHIVED,
    ),
}

# Contributors propose; only managers and above may decide.
ACTION_MIN_ROLE: dict[WorkflowAction, UserRole] = {
    WorkflowAction.SUBMIT_REVIEW: UserRole.CONTRIBUTOR,
    WorkflowAction.APPROVE: UserRole.MANAGER,
    WorkflowAction.PUBLISH: UserRole.MANAGER,
    WorkflowAction.REJECT: UserRole.MANAGER,
    WorkflowAction.ARCHIVE: UserRole.MANAGER,
}


def next_status(action: WorkflowAction, current: ContentStatus | str) -> ContentStatus:
    """Return the status ``action`` leads to from ``current``.

    Raises:
        InvalidTransitionError: ``action`` is not legal from ``current``.
    """
    current = ContentStatus(current)
    legal_from, target = TRANSITIONS[action]
    if current not in legal_from:
        raise InvalidTransitionError(
            f"Cannot {action.value.replace('_', ' ')} a topic in {current.value} status"
        )
    return target


def allowed_actions(current: ContentStatus | str) -> list[WorkflowAction]:
    current = ContentStatus(current)
    return [action for action, (legal_from, _) in TRANSITIONS.items() if current in legal_from]


_MARKDOWN_MARKERS = re.compile(r"[#*`]")


def derive_excerpt(content: str, length: int = 200) -> str:
    """First ``length`` characters of ``content`` with heading/emphasis/code markers removed."""
    return _MARKDOWN_MARKERS.sub("", content[:length])
