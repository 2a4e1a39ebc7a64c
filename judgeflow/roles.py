"""Roles, actions and the single authorization policy table.

Every "who may do this" rule lives in ``_POLICY``; services call
``is_authorized_for`` or ``require`` instead of comparing role strings.
"""

from __future__ import annotations

from enum import Enum

from judgeflow.errors import ForbiddenError


class Role(str, Enum):
    ADMIN = "ADMIN"
    ORGANIZER = "ORGANIZER"
    BOARD = "BOARD"
    TALLY_MASTER = "TALLY_MASTER"
    AUDITOR = "AUDITOR"
    JUDGE = "JUDGE"
    EMCEE = "EMCEE"
    CONTESTANT = "CONTESTANT"

    @classmethod
    def parse(cls, value: Role | str) -> Role:
        """Coerce a role string from the identity context.

        Raises:
            ForbiddenError: for a role name the system does not know.
        """
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ForbiddenError(f"Unknown role: {value}", role=str(value)) from None


class Action(str, Enum):
    CERTIFY_CATEGORY = "CERTIFY_CATEGORY"
    SIGN_WINNERS = "SIGN_WINNERS"
    CERTIFY_TOTALS = "CERTIFY_TOTALS"
    CERTIFY_JUDGE = "CERTIFY_JUDGE"
    CREATE_QUORUM_REQUEST = "CREATE_QUORUM_REQUEST"
    SIGN_QUORUM_REQUEST = "SIGN_QUORUM_REQUEST"
    REJECT_QUORUM_REQUEST = "REJECT_QUORUM_REQUEST"
    VIEW_WINNERS = "VIEW_WINNERS"


# Roles whose signature slot exists on a quorum request
QUORUM_SIGNER_ROLES: tuple[Role, ...] = (Role.AUDITOR, Role.TALLY_MASTER, Role.BOARD)

# Roles that must be present for a category to count as fully certified
REQUIRED_CERTIFICATION_ROLES: tuple[Role, ...] = (
    Role.JUDGE,
    Role.TALLY_MASTER,
    Role.AUDITOR,
    Role.BOARD,
)

_POLICY: dict[Action, frozenset[Role]] = {
    Action.CERTIFY_CATEGORY: frozenset({
        Role.ADMIN, Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.ORGANIZER,
    }),
    # Any known role may leave an audit signature on the winners sheet
    Action.SIGN_WINNERS: frozenset(Role),
    Action.CERTIFY_TOTALS: frozenset({Role.ADMIN, Role.TALLY_MASTER}),
    Action.CERTIFY_JUDGE: frozenset({Role.ADMIN, Role.JUDGE}),
    Action.CREATE_QUORUM_REQUEST: frozenset({Role.ADMIN, Role.BOARD}),
    Action.SIGN_QUORUM_REQUEST: frozenset(QUORUM_SIGNER_ROLES),
    Action.REJECT_QUORUM_REQUEST: frozenset({
        Role.ADMIN, Role.BOARD, Role.AUDITOR, Role.TALLY_MASTER,
    }),
    Action.VIEW_WINNERS: frozenset({Role.ADMIN, Role.BOARD}),
}


def is_authorized_for(action: Action, role: Role | str) -> bool:
    """Return True if ``role`` may perform ``action``. Unknown roles are never authorized."""
    try:
        parsed = Role.parse(role)
    except ForbiddenError:
        return False
    return parsed in _POLICY[action]


def require(action: Action, role: Role | str, message: str | None = None) -> Role:
    """Parse ``role`` and raise ForbiddenError unless it may perform ``action``."""
    parsed = Role.parse(role)
    if parsed not in _POLICY[action]:
        raise ForbiddenError(
            message or f"Role {parsed.value} is not permitted to {action.value.lower()}",
            role=parsed.value,
            action=action.value,
        )
    return parsed


__all__ = [
    "Action",
    "QUORUM_SIGNER_ROLES",
    "REQUIRED_CERTIFICATION_ROLES",
    "Role",
    "is_authorized_for",
    "require",
]
