import enum

from flask_login import current_user

from .errors import Forbidden, Unauthorized
from .models import UserRole


class Action(enum.Enum):
    CREATE_CLUB = "create_club"
    UPDATE_CLUB = "update_club"
    DELETE_CLUB = "delete_club"
    VIEW_MEMBERS = "view_members"
    UPDATE_MEMBER = "update_member"
    MANAGE_ADMINS = "manage_admins"
    APPROVE_JOIN_REQUEST = "approve_join_request"
    CREATE_EVENT = "create_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    VIEW_RSVPS = "view_rsvps"
    VIEW_FEEDBACK = "view_feedback"
    CHECK_IN = "check_in"
    JOIN = "join"
    LEAVE = "leave"
    RSVP = "rsvp"
    SUBMIT_FEEDBACK = "submit_feedback"
    VIEW_PROFILE = "view_profile"
    VIEW_RATINGS = "view_ratings"


class DenyReason(enum.Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_CLUB_ADMIN = "not_club_admin"


CLUB_ADMIN_ACTIONS = frozenset(
    {
        Action.UPDATE_CLUB,
        Action.VIEW_MEMBERS,
        Action.UPDATE_MEMBER,
        Action.MANAGE_ADMINS,
        Action.APPROVE_JOIN_REQUEST,
        Action.CREATE_EVENT,
        Action.UPDATE_EVENT,
        Action.DELETE_EVENT,
        Action.VIEW_RSVPS,
        Action.VIEW_FEEDBACK,
        Action.CHECK_IN,
    }
)
CREATOR_ROLE_ACTIONS = frozenset({Action.CREATE_CLUB, Action.CREATE_EVENT})
CREATOR_ROLES = frozenset({UserRole.CLUB_ADMIN, UserRole.SUPER_ADMIN})
SUPER_ADMIN_ACTIONS = frozenset({Action.DELETE_CLUB})

DENY_MESSAGES = {
    DenyReason.NOT_AUTHENTICATED: "Authentication required.",
    DenyReason.INSUFFICIENT_ROLE: "Your role does not allow this action.",
    DenyReason.NOT_CLUB_ADMIN: "You are not an admin of this club.",
}


class Decision:
    __slots__ = ("allowed", "reason")

    def __init__(self, allowed, reason=None):
        self.allowed = allowed
        self.reason = reason

    def __bool__(self):
        return self.allowed

    def __repr__(self):
        if self.allowed:
            return "Decision(allow)"
        return f"Decision(deny, {self.reason.value})"


ALLOW = Decision(True)


def deny(reason):
    return Decision(False, reason)


def can(actor, action, club=None):
    """Decide whether ``actor`` may perform ``action`` on ``club``.

    Pure predicate: looks only at the actor's global role and the club's admin
    roster. ``club`` is required for club-admin actions and ignored otherwise.
    """
    if actor is None or not getattr(actor, "is_authenticated", False) or not actor.is_active:
        return deny(DenyReason.NOT_AUTHENTICATED)
    if actor.role == UserRole.SUPER_ADMIN:
        return ALLOW
    if action in SUPER_ADMIN_ACTIONS:
        return deny(DenyReason.INSUFFICIENT_ROLE)
    if action in CREATOR_ROLE_ACTIONS and actor.role not in CREATOR_ROLES:
        return deny(DenyReason.INSUFFICIENT_ROLE)
    if action in CLUB_ADMIN_ACTIONS:
        if club is None or not club.is_admin(actor.id):
            return deny(DenyReason.NOT_CLUB_ADMIN)
    return ALLOW


def authorize(actor, action, club=None):
    decision = can(actor, action, club)
    if decision:
        return decision
    if decision.reason == DenyReason.NOT_AUTHENTICATED:
        raise Unauthorized(DENY_MESSAGES[decision.reason])
    raise Forbidden(
        DENY_MESSAGES[decision.reason],
        reason=decision.reason.value,
        action=action.value,
    )


def current_actor():
    user = current_user._get_current_object()
    if user is None or not user.is_authenticated:
        return None
    return user
