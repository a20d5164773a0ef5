"""Club registry: creation, lookup, listing, update and cascading deletion."""

import re

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..constants import (
    CLUB_CATEGORIES,
    CLUB_DESCRIPTION_LENGTH,
    CLUB_FOCUS_MAX,
    CLUB_NAME_LENGTH,
    DEFAULT_DEPARTMENT,
    DEFAULT_MAX_MEMBERS,
    DEPARTMENTS,
    MAX_TAGS,
    MEETING_DAYS,
    MEETING_FREQUENCIES,
    TAG_MAX_LENGTH,
)
from ..errors import DuplicateName, NotFound, ValidationError
from ..extensions import db
from ..locking import hold, load_for_update, unit_of_work
from ..models import AdminRole, Club, ClubAdmin, ClubMember, MemberStatus
from ..rbac import Action, authorize
from ..validators import (
    choice,
    clean_text,
    normalize_name,
    ordering,
    positive_int,
    tag_list,
)


TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

CLUB_FIELDS = (
    "name",
    "description",
    "category",
    "department",
    "focus",
    "contact_email",
    "meeting_day",
    "meeting_time",
    "meeting_location",
    "meeting_frequency",
    "max_members",
    "join_approval_required",
    "is_active",
    "tags",
)

CLUB_DEFAULTS = {
    "department": DEFAULT_DEPARTMENT,
    "max_members": DEFAULT_MAX_MEMBERS,
    "join_approval_required": False,
    "is_active": True,
}


def _meeting_time(value):
    value = clean_text("meeting_time", value, required=False)
    if value is not None and not TIME_PATTERN.match(value):
        raise ValidationError(
            "meeting_time must be in HH:MM format.", field="meeting_time"
        )
    return value


def _flag(field):
    def check(value):
        if not isinstance(value, bool):
            raise ValidationError(f"{field} must be true or false.", field=field)
        return value

    return check


def _optional_choice(field, choices):
    def check(value):
        if value is None:
            return None
        return choice(field, value, choices)

    return check


VALIDATORS = {
    "name": lambda v: clean_text("name", v, *CLUB_NAME_LENGTH),
    "description": lambda v: clean_text("description", v, *CLUB_DESCRIPTION_LENGTH),
    "category": lambda v: choice("category", v, CLUB_CATEGORIES),
    "department": lambda v: choice("department", v, DEPARTMENTS),
    "focus": lambda v: clean_text("focus", v, max_length=CLUB_FOCUS_MAX),
    "contact_email": lambda v: clean_text(
        "contact_email", v, max_length=255, required=False
    ),
    "meeting_day": _optional_choice("meeting_day", MEETING_DAYS),
    "meeting_time": _meeting_time,
    "meeting_location": lambda v: clean_text(
        "meeting_location", v, max_length=200, required=False
    ),
    "meeting_frequency": _optional_choice("meeting_frequency", MEETING_FREQUENCIES),
    "max_members": lambda v: positive_int("max_members", v),
    "join_approval_required": _flag("join_approval_required"),
    "is_active": _flag("is_active"),
    "tags": lambda v: tag_list("tags", v, MAX_TAGS, TAG_MAX_LENGTH),
}


def clean_club_fields(fields, partial=False):
    unknown = sorted(set(fields) - set(CLUB_FIELDS))
    if unknown:
        raise ValidationError(
            f"Unknown club fields: {', '.join(unknown)}.", field=unknown[0]
        )
    if partial:
        return {name: VALIDATORS[name](value) for name, value in fields.items()}
    values = dict(CLUB_DEFAULTS)
    values.update({k: v for k, v in fields.items() if v is not None})
    return {name: VALIDATORS[name](values.get(name)) for name in CLUB_FIELDS}


def _flush_unique_name(name):
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateName(field="name", name=name)


def create_club(actor, **fields):
    """Create a club with ``actor`` as its president in one transaction."""
    authorize(actor, Action.CREATE_CLUB)
    values = clean_club_fields(fields)
    club = Club(name_key=normalize_name(values["name"]), **values)
    club.admins.append(ClubAdmin(user_id=actor.id, role=AdminRole.PRESIDENT))
    db.session.add(club)
    _flush_unique_name(values["name"])
    db.session.commit()
    current_app.logger.info("Club %s created by user %s", club.id, actor.id)
    return club


def get_club(club_id):
    club = db.session.get(Club, club_id)
    if club is None:
        raise NotFound("Club not found.", resource="club", id=club_id)
    return club


SORT_COLUMNS = {
    "created_at": Club.created_at,
    "name": Club.name_key,
    "established_at": Club.established_at,
    "category": Club.category,
}


def list_clubs(
    category=None,
    department=None,
    search=None,
    page=1,
    per_page=12,
    sort_by="created_at",
    sort_order="desc",
):
    query = Club.query.filter_by(is_active=True)
    if category and category != "all":
        query = query.filter_by(category=category)
    if department and department != "all":
        query = query.filter_by(department=department)
    if search:
        like = f"%{search}%"
        query = query.filter(
            Club.name.ilike(like)
            | Club.description.ilike(like)
            | Club.tags_text.ilike(like)
        )
    order = ordering(SORT_COLUMNS, sort_by, sort_order)
    return query.order_by(order, Club.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )


def update_club(club_id, actor, **changes):
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        authorize(actor, Action.UPDATE_CLUB, club)
        values = clean_club_fields(changes, partial=True)
        if "max_members" in values:
            active = ClubMember.query.filter_by(
                club_id=club.id, status=MemberStatus.ACTIVE
            ).count()
            if values["max_members"] < active:
                raise ValidationError(
                    "max_members cannot be lower than the number of active members.",
                    field="max_members",
                    current=active,
                    limit=values["max_members"],
                )
        for name, value in values.items():
            setattr(club, name, value)
        if "name" in values:
            club.name_key = normalize_name(values["name"])
            _flush_unique_name(values["name"])
    current_app.logger.info(
        "Club %s updated by user %s: %s", club_id, actor.id, ", ".join(sorted(values))
    )
    return club


def delete_club(club_id, actor):
    """Delete a club together with its rosters and events.

    Member, admin and request rows, the club's events and their RSVP,
    attendance and feedback rows go in the same transaction, so no user
    back-reference can outlive the club. Retrying after success raises
    ``NotFound`` without side effects.
    """
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        authorize(actor, Action.DELETE_CLUB, club)
        event_ids = [event.id for event in club.events]
        with hold("event", event_ids):
            db.session.delete(club)
            db.session.flush()
    current_app.logger.info(
        "Club %s deleted by user %s with %d events", club_id, actor.id, len(event_ids)
    )
