"""RSVP, check-in and feedback against a single event.

Each mutation runs under the event's unit of work: the going count, the
existing attendee row and the existing feedback row are read after the event
row is locked and before the transaction commits.
"""

from collections import namedtuple
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..constants import FEEDBACK_COMMENT_MAX, RATING_RANGE, RSVP_NOTE_MAX
from ..errors import (
    Conflict,
    DuplicateFeedback,
    EventInPast,
    EventNotCompleted,
    InvalidRating,
    MembersOnly,
    NotFound,
    RegistrationClosed,
)
from ..extensions import db
from ..locking import load_for_update, unit_of_work
from ..models import (
    RSVP,
    Attendance,
    Event,
    EventStatus,
    EventType,
    Feedback,
    RSVPStatus,
    User,
)
from ..rbac import Action, authorize
from ..stats import average_rating
from ..validators import clean_text, enum_member
from .events import get_event


CheckInOutcome = namedtuple("CheckInOutcome", ["attendance", "created", "actual_attendance"])
FeedbackOutcome = namedtuple(
    "FeedbackOutcome", ["feedback", "average_rating", "total_feedback"]
)

GATED_TYPES = (EventType.MEMBERS_ONLY, EventType.INVITE_ONLY)


def _check_registration(event, now):
    if event.status == EventStatus.CANCELLED:
        raise RegistrationClosed(
            "This event has been cancelled.", reason="cancelled", event_id=event.id
        )
    if not event.registration_required:
        return
    going = RSVP.query.filter_by(event_id=event.id, status=RSVPStatus.GOING).count()
    if going >= event.max_capacity:
        raise RegistrationClosed(
            reason="full",
            event_id=event.id,
            current=going,
            limit=event.max_capacity,
        )
    if event.registration_deadline and now > event.registration_deadline:
        raise RegistrationClosed(
            reason="deadline_passed",
            event_id=event.id,
            deadline=event.registration_deadline.isoformat(),
        )


def _check_audience(event, user):
    if event.type not in GATED_TYPES:
        return
    club = event.club
    if not club.is_member(user.id) and not club.is_admin(user.id):
        raise MembersOnly(event_id=event.id, club_id=club.id)


def rsvp(event_id, user, status, note=None):
    """Record ``user``'s answer for an event, replacing any earlier one.

    ``not-going`` keeps the row for the organisers' counts but drops the
    event from the user's RSVP list.
    """
    authorize(user, Action.RSVP)
    status = enum_member("status", status, RSVPStatus)
    note = clean_text("note", note, max_length=RSVP_NOTE_MAX, required=False)
    with unit_of_work("event", event_id):
        event = load_for_update(Event, event_id, "Event")
        now = datetime.utcnow()
        if event.start_datetime < now:
            raise EventInPast(event_id=event.id)
        _check_registration(event, now)
        _check_audience(event, user)
        entry = RSVP.query.filter_by(event_id=event.id, user_id=user.id).first()
        if entry:
            entry.status = status
            entry.note = note
            entry.rsvp_at = now
        else:
            entry = RSVP(event_id=event.id, user_id=user.id, status=status, note=note)
            db.session.add(entry)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("RSVP changed concurrently, please retry.", event_id=event_id)
    current_app.logger.info(
        "User %s RSVP %s for event %s", user.id, status.value, event_id
    )
    return entry


def check_in(event_id, actor, user_id):
    """Record physical attendance; scanning the same user twice is a no-op."""
    with unit_of_work("event", event_id):
        event = load_for_update(Event, event_id, "Event")
        authorize(actor, Action.CHECK_IN, event.club)
        if db.session.get(User, user_id) is None:
            raise NotFound("User not found.", resource="user", id=user_id)
        attendance = Attendance.query.filter_by(event_id=event.id, user_id=user_id).first()
        created = attendance is None
        if created:
            attendance = Attendance(
                event_id=event.id, user_id=user_id, checked_in_by_id=actor.id
            )
            db.session.add(attendance)
            db.session.flush()
        total = Attendance.query.filter_by(event_id=event.id).count()
    if created:
        current_app.logger.info(
            "User %s checked in to event %s by user %s", user_id, event_id, actor.id
        )
    return CheckInOutcome(attendance, created, total)


def validate_rating(rating):
    low, high = RATING_RANGE
    if isinstance(rating, bool) or not isinstance(rating, int) or not low <= rating <= high:
        raise InvalidRating(field="rating", value=rating, minimum=low, maximum=high)
    return rating


def submit_feedback(event_id, user, rating, comment=None, is_anonymous=False):
    authorize(user, Action.SUBMIT_FEEDBACK)
    rating = validate_rating(rating)
    comment = clean_text(
        "comment", comment, max_length=FEEDBACK_COMMENT_MAX, required=False
    )
    with unit_of_work("event", event_id):
        event = load_for_update(Event, event_id, "Event")
        if event.status == EventStatus.CANCELLED:
            raise EventNotCompleted(
                "Cannot provide feedback for a cancelled event.",
                reason="cancelled",
                event_id=event.id,
            )
        if event.start_datetime > datetime.utcnow():
            raise EventNotCompleted(event_id=event.id)
        if Feedback.query.filter_by(event_id=event.id, user_id=user.id).first():
            raise DuplicateFeedback(event_id=event.id)
        feedback = Feedback(
            event_id=event.id,
            user_id=user.id,
            rating=rating,
            comment=comment or "",
            is_anonymous=bool(is_anonymous),
        )
        db.session.add(feedback)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateFeedback(event_id=event_id)
        ratings = [
            value
            for (value,) in db.session.query(Feedback.rating).filter_by(event_id=event.id)
        ]
    current_app.logger.info("User %s rated event %s", user.id, event_id)
    return FeedbackOutcome(feedback, average_rating(ratings), len(ratings))


def list_rsvps(event_id, actor):
    event = get_event(event_id)
    authorize(actor, Action.VIEW_RSVPS, event.club)
    return event


def list_feedback(event_id, actor):
    event = get_event(event_id)
    authorize(actor, Action.VIEW_FEEDBACK, event.club)
    return event


def feedback_summary(event_id, user):
    """Ratings for any signed-in user; no comments or identities."""
    authorize(user, Action.VIEW_RATINGS)
    return get_event(event_id)
