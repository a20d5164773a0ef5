"""Public views of the aggregates.

Rosters store user ids only; this module resolves them to user summaries and
attaches the derived values from :mod:`campusclubs.stats` on every read.
"""

from datetime import datetime

from . import stats
from .models import MemberStatus, RSVPStatus


def _iso(value):
    return value.isoformat() if value else None


def user_summary(user):
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def user_profile(user):
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "student_id": user.student_id,
        "department": user.department,
        "year": user.year,
        "bio": user.bio,
        "is_active": user.is_active,
        "last_login_at": _iso(user.last_login_at),
        "joined_clubs": [
            {
                "club_id": m.club_id,
                "name": m.club.name,
                "role": m.role.value,
                "joined_at": _iso(m.joined_at),
            }
            for m in user.memberships
            if m.status == MemberStatus.ACTIVE
        ],
        "admin_clubs": [
            {"club_id": a.club_id, "name": a.club.name, "role": a.role.value}
            for a in user.admin_roles
        ],
        "event_rsvps": [
            {
                "event_id": r.event_id,
                "title": r.event.title,
                "status": r.status.value,
                "rsvp_at": _iso(r.rsvp_at),
            }
            for r in user.event_rsvps
        ],
    }


def member_to_dict(member):
    return {
        "user": user_summary(member.user),
        "role": member.role.value,
        "status": member.status.value,
        "joined_at": _iso(member.joined_at),
    }


def admin_to_dict(admin):
    return {
        "user": user_summary(admin.user),
        "role": admin.role.value,
        "appointed_at": _iso(admin.appointed_at),
    }


def request_to_dict(request):
    return {
        "user": user_summary(request.user),
        "message": request.message,
        "requested_at": _iso(request.requested_at),
    }


def club_to_dict(club, now=None):
    now = now or datetime.utcnow()
    return {
        "id": club.id,
        "name": club.name,
        "description": club.description,
        "category": club.category,
        "department": club.department,
        "focus": club.focus,
        "contact_email": club.contact_email,
        "meeting_schedule": {
            "day": club.meeting_day,
            "time": club.meeting_time,
            "location": club.meeting_location,
            "frequency": club.meeting_frequency,
        },
        "max_members": club.max_members,
        "join_approval_required": club.join_approval_required,
        "is_active": club.is_active,
        "tags": club.tags,
        "established_at": _iso(club.established_at),
        "created_at": _iso(club.created_at),
        "admins": [admin_to_dict(a) for a in club.admins],
        "active_members_count": stats.active_members_count(club.members),
        "active_events_count": len(club.events),
        "club_age": stats.club_age_years(club.established_at, now),
        "stats": stats.club_stats(club, now),
    }


def membership_roster(club):
    active = [m for m in club.members if m.status == MemberStatus.ACTIVE]
    return {
        "members": [member_to_dict(m) for m in active],
        "admins": [admin_to_dict(a) for a in club.admins],
        "total_members": len(active),
        "total_admins": len(club.admins),
    }


def join_outcome_to_dict(outcome):
    if outcome.request is not None:
        return {"status": outcome.status, "request": request_to_dict(outcome.request)}
    return {"status": outcome.status, "member": member_to_dict(outcome.member)}


def rsvp_to_dict(rsvp):
    return {
        "user": user_summary(rsvp.user),
        "status": rsvp.status.value,
        "note": rsvp.note,
        "rsvp_at": _iso(rsvp.rsvp_at),
    }


def event_to_dict(event, viewer=None, now=None):
    now = now or datetime.utcnow()
    going = stats.going_count(event.rsvps)
    data = {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "location": event.location,
        "category": event.category,
        "type": event.type.value,
        "status": event.status.value,
        "start_datetime": _iso(event.start_datetime),
        "end_datetime": _iso(event.end_datetime),
        "duration": stats.duration_minutes(event.start_datetime, event.end_datetime),
        "max_capacity": event.max_capacity,
        "registration_required": event.registration_required,
        "registration_deadline": _iso(event.registration_deadline),
        "tags": event.tags,
        "club": {"id": event.club.id, "name": event.club.name},
        "created_by": user_summary(event.created_by),
        "rsvp_counts": stats.rsvp_counts(event.rsvps),
        "available_spots": stats.available_spots(event.max_capacity, going),
        "is_full": stats.is_full(event.max_capacity, going),
        "event_status": stats.event_status(event.status, event.start_datetime, now),
        "is_registration_open": stats.is_registration_open(event, now),
        "stats": stats.event_stats(event),
    }
    if viewer is not None and viewer.is_authenticated:
        own = event.rsvp_for(viewer.id)
        data["user_rsvp"] = rsvp_to_dict(own) if own else None
    return data


def rsvp_summary(event):
    going = stats.going_count(event.rsvps)
    return {
        "rsvp_counts": stats.rsvp_counts(event.rsvps),
        "available_spots": stats.available_spots(event.max_capacity, going),
    }


def rsvp_roster(event):
    grouped = {"going": [], "maybe": [], "not_going": []}
    keys = {
        RSVPStatus.GOING: "going",
        RSVPStatus.MAYBE: "maybe",
        RSVPStatus.NOT_GOING: "not_going",
    }
    for rsvp in event.rsvps:
        grouped[keys[rsvp.status]].append(rsvp_to_dict(rsvp))
    return {
        "rsvp_counts": stats.rsvp_counts(event.rsvps),
        "rsvps_by_status": grouped,
        "total_rsvps": len(event.rsvps),
    }


def feedback_to_dict(feedback):
    return {
        "id": feedback.id,
        "rating": feedback.rating,
        "comment": feedback.comment,
        "submitted_at": _iso(feedback.submitted_at),
        "user": None if feedback.is_anonymous else user_summary(feedback.user),
    }


def feedback_summary(event):
    ratings = [fb.rating for fb in event.feedback]
    return {
        "average_rating": stats.average_rating(ratings),
        "total_feedback": len(ratings),
        "rating_distribution": stats.rating_distribution(ratings),
    }


def feedback_report(event):
    report = feedback_summary(event)
    report["feedback"] = [feedback_to_dict(fb) for fb in event.feedback]
    return report


def page_to_dict(pagination, serialize):
    return {
        "data": [serialize(item) for item in pagination.items],
        "count": len(pagination.items),
        "total": pagination.total,
        "total_pages": pagination.pages,
        "current_page": pagination.page,
    }
