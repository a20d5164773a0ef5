"""Event registry: creation, lookup, listing, update and deletion."""

from datetime import datetime

from flask import current_app

from ..constants import (
    DEFAULT_EVENT_CAPACITY,
    DEFAULT_EVENT_CATEGORY,
    EVENT_CATEGORIES,
    EVENT_DESCRIPTION_LENGTH,
    EVENT_LOCATION_MAX,
    EVENT_TITLE_LENGTH,
    MAX_TAGS,
    TAG_MAX_LENGTH,
)
from ..errors import NotFound, ValidationError
from ..extensions import db
from ..locking import load_for_update, unit_of_work
from ..models import RSVP, Club, Event, EventStatus, EventType, RSVPStatus
from ..rbac import Action, authorize
from ..validators import (
    choice,
    clean_text,
    enum_member,
    future_datetime,
    ordering,
    positive_int,
    tag_list,
)
from .clubs import get_club


EVENT_FIELDS = (
    "title",
    "description",
    "location",
    "category",
    "type",
    "start_datetime",
    "end_datetime",
    "max_capacity",
    "registration_required",
    "registration_deadline",
    "status",
    "tags",
)

EVENT_DEFAULTS = {
    "category": DEFAULT_EVENT_CATEGORY,
    "type": EventType.MEMBERS_ONLY,
    "max_capacity": DEFAULT_EVENT_CAPACITY,
    "registration_required": False,
    "status": EventStatus.PUBLISHED,
}


def _optional_datetime(field):
    def check(value):
        if value is not None and not isinstance(value, datetime):
            raise ValidationError(f"{field} must be a date and time.", field=field)
        return value

    return check


def _flag(value):
    if not isinstance(value, bool):
        raise ValidationError(
            "registration_required must be true or false.", field="registration_required"
        )
    return value


VALIDATORS = {
    "title": lambda v: clean_text("title", v, *EVENT_TITLE_LENGTH),
    "description": lambda v: clean_text("description", v, *EVENT_DESCRIPTION_LENGTH),
    "location": lambda v: clean_text("location", v, max_length=EVENT_LOCATION_MAX),
    "category": lambda v: choice("category", v, EVENT_CATEGORIES),
    "type": lambda v: enum_member("type", v, EventType),
    "start_datetime": lambda v: future_datetime("start_datetime", v),
    "end_datetime": _optional_datetime("end_datetime"),
    "max_capacity": lambda v: positive_int("max_capacity", v),
    "registration_required": _flag,
    "registration_deadline": _optional_datetime("registration_deadline"),
    "status": lambda v: enum_member("status", v, EventStatus),
    "tags": lambda v: tag_list("tags", v, MAX_TAGS, TAG_MAX_LENGTH),
}


def clean_event_fields(fields, partial=False):
    unknown = sorted(set(fields) - set(EVENT_FIELDS))
    if unknown:
        raise ValidationError(
            f"Unknown event fields: {', '.join(unknown)}.", field=unknown[0]
        )
    if partial:
        return {name: VALIDATORS[name](value) for name, value in fields.items()}
    values = dict(EVENT_DEFAULTS)
    values.update({k: v for k, v in fields.items() if v is not None})
    return {name: VALIDATORS[name](values.get(name)) for name in EVENT_FIELDS}


def _check_schedule(start, end, deadline):
    if end is not None and end <= start:
        raise ValidationError(
            "End time must be after the start time.", field="end_datetime"
        )
    if deadline is not None and deadline >= start:
        raise ValidationError(
            "Registration deadline must be before the start time.",
            field="registration_deadline",
        )


def create_event(actor, club_id, **fields):
    with unit_of_work("club", club_id):
        club = load_for_update(Club, club_id, "Club")
        authorize(actor, Action.CREATE_EVENT, club)
        values = clean_event_fields(fields)
        _check_schedule(
            values["start_datetime"],
            values["end_datetime"],
            values["registration_deadline"],
        )
        event = Event(club_id=club.id, created_by_id=actor.id, **values)
        db.session.add(event)
        db.session.flush()
    current_app.logger.info(
        "Event %s created for club %s by user %s", event.id, club_id, actor.id
    )
    return event


def get_event(event_id):
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found.", resource="event", id=event_id)
    return event


SORT_COLUMNS = {
    "start_datetime": Event.start_datetime,
    "created_at": Event.created_at,
    "title": Event.title,
    "views": Event.views,
}


def list_events(
    club_id=None,
    category=None,
    status=EventStatus.PUBLISHED.value,
    upcoming=True,
    search=None,
    page=1,
    per_page=12,
    sort_by="start_datetime",
    sort_order="asc",
):
    query = Event.query
    if club_id:
        query = query.filter_by(club_id=club_id)
    if category and category != "all":
        query = query.filter_by(category=category)
    if status and status != "all":
        query = query.filter_by(status=enum_member("status", status, EventStatus))
    if upcoming:
        query = query.filter(Event.start_datetime >= datetime.utcnow())
    if search:
        like = f"%{search}%"
        query = query.filter(
            Event.title.ilike(like)
            | Event.description.ilike(like)
            | Event.tags_text.ilike(like)
        )
    order = ordering(SORT_COLUMNS, sort_by, sort_order)
    return query.order_by(order, Event.id.asc()).paginate(
        page=page, per_page=per_page, error_out=False
    )


def record_view(event_id):
    """Count one detail view with a single atomic UPDATE and return the event."""
    updated = Event.query.filter_by(id=event_id).update(
        {Event.views: Event.views + 1}, synchronize_session=False
    )
    db.session.commit()
    if not updated:
        raise NotFound("Event not found.", resource="event", id=event_id)
    return get_event(event_id)


def list_club_events(club_id, upcoming=True, limit=10):
    get_club(club_id)
    query = Event.query.filter(
        Event.club_id == club_id,
        Event.status.in_([EventStatus.PUBLISHED, EventStatus.ONGOING]),
    )
    if upcoming:
        query = query.filter(Event.start_datetime >= datetime.utcnow())
    return query.order_by(Event.start_datetime.asc()).limit(limit).all()


def update_event(event_id, actor, **changes):
    with unit_of_work("event", event_id):
        event = load_for_update(Event, event_id, "Event")
        authorize(actor, Action.UPDATE_EVENT, event.club)
        values = clean_event_fields(changes, partial=True)
        _check_schedule(
            values.get("start_datetime", event.start_datetime),
            values.get("end_datetime", event.end_datetime),
            values.get("registration_deadline", event.registration_deadline),
        )
        if "max_capacity" in values:
            going = RSVP.query.filter_by(
                event_id=event.id, status=RSVPStatus.GOING
            ).count()
            if values["max_capacity"] < going:
                raise ValidationError(
                    "max_capacity cannot be lower than the number of going RSVPs.",
                    field="max_capacity",
                    current=going,
                    limit=values["max_capacity"],
                )
        for name, value in values.items():
            setattr(event, name, value)
    current_app.logger.info(
        "Event %s updated by user %s: %s", event_id, actor.id, ", ".join(sorted(values))
    )
    return event


def delete_event(event_id, actor):
    """Delete an event; its RSVP, attendance and feedback rows go with it."""
    with unit_of_work("event", event_id):
        event = load_for_update(Event, event_id, "Event")
        authorize(actor, Action.DELETE_EVENT, event.club)
        db.session.delete(event)
    current_app.logger.info("Event %s deleted by user %s", event_id, actor.id)
