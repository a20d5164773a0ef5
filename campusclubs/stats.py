"""Derived values recomputed from the stored rosters on every read.

Nothing here is persisted: counts, capacity, ratings and status labels are
projections of the authoritative member, RSVP, attendance and feedback rows.
"""

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from .models import EventStatus, MemberStatus, RSVPStatus


def active_members_count(members):
    return sum(1 for m in members if m.status == MemberStatus.ACTIVE)


def rsvp_counts(rsvps):
    counts = {"going": 0, "maybe": 0, "not_going": 0, "total": 0}
    for rsvp in rsvps:
        counts["total"] += 1
        if rsvp.status == RSVPStatus.GOING:
            counts["going"] += 1
        elif rsvp.status == RSVPStatus.MAYBE:
            counts["maybe"] += 1
        elif rsvp.status == RSVPStatus.NOT_GOING:
            counts["not_going"] += 1
    return counts


def going_count(rsvps):
    return sum(1 for r in rsvps if r.status == RSVPStatus.GOING)


def available_spots(max_capacity, going):
    return max(0, max_capacity - going)


def is_full(max_capacity, going):
    return going >= max_capacity


def event_status(status, start_datetime, now=None):
    """Label an event relative to ``now``: cancelled, completed, today or upcoming."""
    now = now or datetime.utcnow()
    if status == EventStatus.CANCELLED:
        return "cancelled"
    if start_datetime < now:
        return "completed"
    if start_datetime.date() == now.date():
        return "today"
    return "upcoming"


def is_registration_open(event, now=None):
    now = now or datetime.utcnow()
    if event.status == EventStatus.CANCELLED:
        return False
    if not event.registration_required:
        return True
    if is_full(event.max_capacity, going_count(event.rsvps)):
        return False
    if event.registration_deadline and now > event.registration_deadline:
        return False
    return True


def _mean(values):
    values = list(values)
    if not values:
        return 0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def average_rating(ratings):
    return _mean(ratings)


def rating_distribution(ratings):
    distribution = {score: 0 for score in range(5, 0, -1)}
    for rating in ratings:
        if rating in distribution:
            distribution[rating] += 1
    return distribution


def duration_minutes(start_datetime, end_datetime):
    if end_datetime is None:
        return None
    return int((end_datetime - start_datetime).total_seconds() // 60)


def club_age_years(established_at, now=None):
    """Whole years since founding, counting a started day as a full day."""
    now = now or datetime.utcnow()
    days = math.ceil((now - established_at).total_seconds() / 86400)
    return max(0, days // 365)


def event_stats(event):
    ratings = [fb.rating for fb in event.feedback]
    return {
        "total_rsvps": len(event.rsvps),
        "actual_attendance": len(event.attendees),
        "average_rating": average_rating(ratings),
        "views": event.views or 0,
    }


def club_stats(club, now=None):
    """Roster-derived club statistics.

    ``average_attendance`` is the mean distinct check-in count over the club's
    events that have already started.
    """
    now = now or datetime.utcnow()
    past_events = [e for e in club.events if e.start_datetime < now]
    attendance = [len(e.attendees) for e in past_events]
    return {
        "total_members": active_members_count(club.members),
        "total_events": len(club.events),
        "average_attendance": _mean(attendance),
    }
