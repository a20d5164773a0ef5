from collections import namedtuple
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..constants import JOIN_MESSAGE_MAX
from ..errors import (
    AlreadyMember,
    ClubFull,
    NotAMember,
    NotFound,
    RequestAlreadyPending,
)
from ..extensions import db
from ..locking import load_for_update, unit_of_work
from ..models import (
    AdminRole,
    Club,
    ClubAdmin,
    ClubMember,
    JoinRequest,
    MemberRole,
    MemberStatus,
    User,
)
from ..rbac import Action, authorize
from ..validators import clean_text, enum_member
from .clubs import get_club


JoinOutcome = namedtuple("JoinOutcome", ["status", "club", "member", "request"])

JOINED = "joined"
PENDING = "pending"


def _active_count(club_id):
    return ClubMember.query.filter_by(
        club_id=club_id, status=MemberStatus.ACTIVE
    ).count()


def _ensure_capacity(club):
    current = _active_count(club.id)
    if current >= club.max_members:
        raise ClubFull(current=current, limit=club.max_members)


def _ensure_not_member(club, user_id):
    if ClubMember.query.filter_by(
        club_id=club.id, user_id=user_id, status=MemberStatus.ACTIVE
    ).first():
        raise AlreadyMember(club_id=club.id)


def _activate(club, user_id):
    """Add ``user_id`` to the roster or reactivate their earlier row."""
    entry = ClubMember.query.filter_by(club_id=club.id, user_id=user_id).first()
    if entry:
        entry.status = MemberStatus.ACTIVE
        entry.role = MemberRole.MEMBER
        entry.joined_at = datetime.utcnow()
    else:
        entry = ClubMember(club_id=club.id, user_id=user_id)
        db.session.add(entry)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise AlreadyMember(club_id=club.id)
    return entry


def _pending_request(club_id, user_id):
    return JoinRequest.query.filter_by(club_id=club_id, user_id=user_id).first()


def _get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.", resource="user", id=user_id)
    return user


def join(club_id, user, message=None):
    """Join a club directly, or file a join request when approval is required."""
    authorize(user, Action.JOIN)
    message = clean_text("message", message, max_length=JOIN_MESSAGE_MAX, required=False)
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        _ensure_not_member(club, user.id)
        _ensure_capacity(club)
        if club.join_approval_required:
            if _pending_request(club.id, user.id):
                raise RequestAlreadyPending(club_id=club.id)
            request = JoinRequest(club_id=club.id, user_id=user.id, message=message or "")
            db.session.add(request)
            try:
                db.session.flush()
            except IntegrityError:
                db.session.rollback()
                raise RequestAlreadyPending(club_id=club_id)
            outcome = JoinOutcome(PENDING, club, None, request)
        else:
            outcome = JoinOutcome(JOINED, club, _activate(club, user.id), None)
    current_app.logger.info("User %s %s club %s", user.id, outcome.status, club_id)
    return outcome


def leave(club_id, user):
    authorize(user, Action.LEAVE)
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        entry = ClubMember.query.filter_by(
            club_id=club.id, user_id=user.id, status=MemberStatus.ACTIVE
        ).first()
        if entry is None:
            raise NotAMember(club_id=club.id)
        entry.status = MemberStatus.INACTIVE
    current_app.logger.info("User %s left club %s", user.id, club_id)
    return club


def list_requests(club_id, actor):
    club = get_club(club_id)
    authorize(actor, Action.APPROVE_JOIN_REQUEST, club)
    return club.pending_requests


def approve_request(club_id, actor, user_id):
    """Admit the author of a pending join request.

    Membership and capacity are re-checked under the club lock; on failure the
    request stays pending.
    """
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        authorize(actor, Action.APPROVE_JOIN_REQUEST, club)
        request = _pending_request(club.id, user_id)
        if request is None:
            raise NotFound("Join request not found.", resource="join_request", id=user_id)
        _ensure_not_member(club, user_id)
        _ensure_capacity(club)
        member = _activate(club, user_id)
        db.session.delete(request)
    current_app.logger.info(
        "Join request of user %s approved for club %s by user %s",
        user_id,
        club_id,
        actor.id,
    )
    return member


def reject_request(club_id, actor, user_id):
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        authorize(actor, Action.APPROVE_JOIN_REQUEST, club)
        request = _pending_request(club.id, user_id)
        if request is None:
            raise NotFound("Join request not found.", resource="join_request", id=user_id)
        db.session.delete(request)
    current_app.logger.info(
        "Join request of user %s rejected for club %s by user %s",
        user_id,
        club_id,
        actor.id,
    )


def add_admin(club_id, actor, target_user_id, role=AdminRole.ADMIN):
    """Appoint ``target_user_id`` as a club officer; repeats update the role."""
    role = enum_member("role", role, AdminRole)
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        authorize(actor, Action.MANAGE_ADMINS, club)
        _get_user(target_user_id)
        entry = ClubAdmin.query.filter_by(club_id=club.id, user_id=target_user_id).first()
        if entry:
            entry.role = role
        else:
            entry = ClubAdmin(club_id=club.id, user_id=target_user_id, role=role)
            db.session.add(entry)
        db.session.flush()
    current_app.logger.info(
        "User %s is %s of club %s", target_user_id, role.value, club_id
    )
    return entry


def update_member(club_id, actor, user_id, role=None, status=None):
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        authorize(actor, Action.UPDATE_MEMBER, club)
        entry = ClubMember.query.filter_by(club_id=club.id, user_id=user_id).first()
        if entry is None:
            raise NotFound("Member not found.", resource="member", id=user_id)
        if status is not None:
            status = enum_member("status", status, MemberStatus)
            if status == MemberStatus.ACTIVE and entry.status != MemberStatus.ACTIVE:
                _ensure_capacity(club)
            entry.status = status
        if role is not None:
            entry.role = enum_member("role", role, MemberRole)
    return entry


def list_members(club_id, actor):
    club = get_club(club_id)
    authorize(actor, Action.VIEW_MEMBERS, club)
    return club
