from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_login import login_required

from ..errors import ValidationError
from ..forms.events import CheckInForm, EventForm, FeedbackForm, RSVPForm
from ..rbac import current_actor
from ..serializers import (
    event_to_dict,
    feedback_report,
    feedback_summary,
    feedback_to_dict,
    page_to_dict,
    rsvp_roster,
    rsvp_summary,
    rsvp_to_dict,
    user_summary,
)
from ..services import events, participation
from ..utils import get_flag, get_page, get_per_page, submitted_data, validate_form


events_bp = Blueprint("events", __name__)


@events_bp.route("", methods=["GET"])
def list_events():
    viewer = current_actor()
    now = datetime.utcnow()
    page = events.list_events(
        club_id=request.args.get("club_id", type=int),
        category=request.args.get("category"),
        status=request.args.get("status", "published"),
        upcoming=get_flag("upcoming"),
        search=request.args.get("search", "").strip() or None,
        sort_by=request.args.get("sort_by", "start_datetime"),
        sort_order=request.args.get("sort_order", "asc"),
        page=get_page(),
        per_page=get_per_page(),
    )
    return jsonify(page_to_dict(page, lambda event: event_to_dict(event, viewer, now)))


@events_bp.route("", methods=["POST"])
@login_required
def create_event():
    form = validate_form(EventForm())
    if form.club_id.data is None:
        raise ValidationError("club_id is required.", field="club_id")
    actor = current_actor()
    event = events.create_event(
        actor, form.club_id.data, **submitted_data(form, exclude=("club_id",))
    )
    return jsonify({"event": event_to_dict(event, actor)}), 201


@events_bp.route("/<int:event_id>", methods=["GET"])
def event_detail(event_id):
    event = events.record_view(event_id)
    return jsonify({"event": event_to_dict(event, current_actor())})


@events_bp.route("/<int:event_id>", methods=["PATCH"])
@login_required
def update_event(event_id):
    form = validate_form(EventForm())
    actor = current_actor()
    event = events.update_event(
        event_id, actor, **submitted_data(form, exclude=("club_id",))
    )
    return jsonify({"event": event_to_dict(event, actor)})


@events_bp.route("/<int:event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id):
    events.delete_event(event_id, current_actor())
    return jsonify({"message": "Event deleted."})


@events_bp.route("/<int:event_id>/rsvp", methods=["POST"])
@login_required
def rsvp(event_id):
    form = validate_form(RSVPForm())
    entry = participation.rsvp(
        event_id, current_actor(), form.status.data, note=form.note.data
    )
    payload = {"rsvp": rsvp_to_dict(entry)}
    payload.update(rsvp_summary(entry.event))
    return jsonify(payload)


@events_bp.route("/<int:event_id>/rsvps", methods=["GET"])
@login_required
def event_rsvps(event_id):
    event = participation.list_rsvps(event_id, current_actor())
    return jsonify(rsvp_roster(event))


@events_bp.route("/<int:event_id>/checkin", methods=["POST"])
@login_required
def check_in(event_id):
    form = validate_form(CheckInForm())
    outcome = participation.check_in(event_id, current_actor(), form.user_id.data)
    return jsonify(
        {
            "user": user_summary(outcome.attendance.user),
            "checked_in_at": outcome.attendance.checked_in_at.isoformat(),
            "created": outcome.created,
            "actual_attendance": outcome.actual_attendance,
        }
    ), (201 if outcome.created else 200)


@events_bp.route("/<int:event_id>/feedback", methods=["POST"])
@login_required
def submit_feedback(event_id):
    form = validate_form(FeedbackForm())
    outcome = participation.submit_feedback(
        event_id,
        current_actor(),
        form.rating.data,
        comment=form.comment.data,
        is_anonymous=form.is_anonymous.data,
    )
    return jsonify(
        {
            "feedback": feedback_to_dict(outcome.feedback),
            "average_rating": outcome.average_rating,
            "total_feedback": outcome.total_feedback,
        }
    ), 201


@events_bp.route("/<int:event_id>/feedback", methods=["GET"])
@login_required
def event_feedback(event_id):
    event = participation.list_feedback(event_id, current_actor())
    return jsonify(feedback_report(event))


@events_bp.route("/<int:event_id>/feedback/summary", methods=["GET"])
@login_required
def event_feedback_summary(event_id):
    event = participation.feedback_summary(event_id, current_actor())
    return jsonify(feedback_summary(event))
