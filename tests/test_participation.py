import threading
from datetime import datetime, timedelta

import pytest

from campusclubs.errors import (
    DuplicateFeedback,
    EventInPast,
    EventNotCompleted,
    Forbidden,
    InvalidRating,
    MembersOnly,
    NotFound,
    RegistrationClosed,
    Unauthorized,
    ValidationError,
)
from campusclubs.extensions import db
from campusclubs.models import (
    RSVP,
    Attendance,
    EventStatus,
    EventType,
    Feedback,
    RSVPStatus,
    User,
    UserRole,
)
from campusclubs.services import membership, participation
from campusclubs.stats import going_count


@pytest.fixture()
def owner(ctx, make_user):
    return make_user(role=UserRole.CLUB_ADMIN)


@pytest.fixture()
def club(owner, make_club):
    return make_club(owner)


def test_rsvp_upserts_single_entry(owner, club, make_user, make_event):
    event = make_event(owner, club, type=EventType.PUBLIC)
    student = make_user()

    participation.rsvp(event.id, student, RSVPStatus.GOING, note="See you")
    entry = participation.rsvp(event.id, student, "maybe")

    assert entry.status == RSVPStatus.MAYBE
    assert entry.note is None
    assert RSVP.query.filter_by(event_id=event.id, user_id=student.id).count() == 1
    assert [r.event_id for r in student.event_rsvps] == [event.id]


def test_not_going_drops_event_from_user_list(owner, club, make_user, make_event):
    event = make_event(owner, club, type=EventType.PUBLIC)
    student = make_user()
    participation.rsvp(event.id, student, "going")

    participation.rsvp(event.id, student, "not-going")

    assert student.event_rsvps == []
    assert RSVP.query.filter_by(event_id=event.id).one().status == RSVPStatus.NOT_GOING


def test_rsvp_past_event(owner, club, make_user, make_event, move_to_past):
    event = move_to_past(make_event(owner, club, type=EventType.PUBLIC))
    with pytest.raises(EventInPast):
        participation.rsvp(event.id, make_user(), RSVPStatus.GOING)


def test_rsvp_full_event_with_registration(owner, club, make_user, make_event):
    event = make_event(
        owner, club, type=EventType.PUBLIC, registration_required=True, max_capacity=1
    )
    first = make_user()
    participation.rsvp(event.id, first, RSVPStatus.GOING)

    with pytest.raises(RegistrationClosed) as excinfo:
        participation.rsvp(event.id, make_user(), RSVPStatus.GOING)
    assert excinfo.value.details["reason"] == "full"
    assert (excinfo.value.details["current"], excinfo.value.details["limit"]) == (1, 1)

    # a full event refuses every answer, seat holder included
    for user, status in ((make_user(), RSVPStatus.MAYBE), (first, RSVPStatus.NOT_GOING)):
        with pytest.raises(RegistrationClosed) as excinfo:
            participation.rsvp(event.id, user, status)
        assert excinfo.value.details["reason"] == "full"
    assert going_count(event.rsvps) == 1
    assert RSVP.query.filter_by(event_id=event.id).count() == 1


def test_open_event_ignores_capacity(owner, club, make_user, make_event):
    event = make_event(owner, club, type=EventType.PUBLIC, max_capacity=1)
    participation.rsvp(event.id, make_user(), RSVPStatus.GOING)

    extra = participation.rsvp(event.id, make_user(), RSVPStatus.GOING)
    assert extra.status == RSVPStatus.GOING
    assert participation.rsvp(event.id, make_user(), "maybe").status == RSVPStatus.MAYBE


def test_rsvp_after_deadline(owner, club, make_user, make_event):
    event = make_event(
        owner,
        club,
        type=EventType.PUBLIC,
        registration_required=True,
        start_datetime=datetime.utcnow() + timedelta(days=3),
        end_datetime=None,
        registration_deadline=datetime.utcnow() + timedelta(days=1),
    )
    event.registration_deadline = datetime.utcnow() - timedelta(minutes=5)
    db.session.commit()

    with pytest.raises(RegistrationClosed) as excinfo:
        participation.rsvp(event.id, make_user(), RSVPStatus.GOING)
    assert excinfo.value.details["reason"] == "deadline_passed"


def test_rsvp_cancelled_event(owner, club, make_user, make_event):
    event = make_event(owner, club, type=EventType.PUBLIC, status=EventStatus.CANCELLED)
    with pytest.raises(RegistrationClosed) as excinfo:
        participation.rsvp(event.id, make_user(), RSVPStatus.GOING)
    assert excinfo.value.details["reason"] == "cancelled"


def test_members_only_events(owner, club, make_user, make_event):
    event = make_event(owner, club)
    outsider = make_user()
    member = make_user()
    membership.join(club.id, member)

    with pytest.raises(MembersOnly):
        participation.rsvp(event.id, outsider, RSVPStatus.GOING)
    assert participation.rsvp(event.id, member, RSVPStatus.GOING).status == RSVPStatus.GOING
    assert participation.rsvp(event.id, owner, RSVPStatus.MAYBE).status == RSVPStatus.MAYBE

    invite_only = make_event(owner, club, type=EventType.INVITE_ONLY)
    with pytest.raises(MembersOnly):
        participation.rsvp(invite_only.id, outsider, RSVPStatus.GOING)


def test_rsvp_rejects_unknown_status(owner, club, make_user, make_event):
    event = make_event(owner, club, type=EventType.PUBLIC)
    with pytest.raises(ValidationError) as excinfo:
        participation.rsvp(event.id, make_user(), "perhaps")
    assert excinfo.value.field == "status"
    with pytest.raises(Unauthorized):
        participation.rsvp(event.id, None, "going")


def test_check_in_is_idempotent(owner, club, make_user, make_event):
    event = make_event(owner, club, type=EventType.PUBLIC)
    student = make_user()

    first = participation.check_in(event.id, owner, student.id)
    second = participation.check_in(event.id, owner, student.id)

    assert first.created and not second.created
    assert second.actual_attendance == 1
    assert Attendance.query.filter_by(event_id=event.id).count() == 1
    assert first.attendance.checked_in_by_id == owner.id

    with pytest.raises(Forbidden):
        participation.check_in(event.id, student, student.id)
    with pytest.raises(NotFound):
        participation.check_in(event.id, owner, 98765)


def test_feedback_flow(owner, club, make_user, make_event, move_to_past):
    event = make_event(owner, club, type=EventType.PUBLIC)
    voters = [make_user() for _ in range(3)]

    with pytest.raises(EventNotCompleted):
        participation.submit_feedback(event.id, voters[0], 5)

    move_to_past(event)
    results = [
        participation.submit_feedback(event.id, voter, rating)
        for voter, rating in zip(voters, [5, 3, 4])
    ]

    assert results[-1].average_rating == 4.0
    assert results[-1].total_feedback == 3
    with pytest.raises(DuplicateFeedback):
        participation.submit_feedback(event.id, voters[0], 1)


def test_feedback_rating_bounds(owner, club, make_user, make_event, move_to_past):
    event = move_to_past(make_event(owner, club, type=EventType.PUBLIC))
    student = make_user()

    for bad in (6, 0, "5", True, None):
        with pytest.raises(InvalidRating):
            participation.submit_feedback(event.id, student, bad)
    assert participation.submit_feedback(event.id, student, 1).average_rating == 1.0


def test_feedback_on_cancelled_event(owner, club, make_user, make_event, move_to_past):
    event = move_to_past(make_event(owner, club, type=EventType.PUBLIC))
    event.status = EventStatus.CANCELLED
    db.session.commit()

    with pytest.raises(EventNotCompleted) as excinfo:
        participation.submit_feedback(event.id, make_user(), 4)
    assert excinfo.value.details["reason"] == "cancelled"


def test_feedback_views(owner, club, make_user, make_event, move_to_past):
    event = move_to_past(make_event(owner, club, type=EventType.PUBLIC))
    student = make_user()
    participation.submit_feedback(event.id, student, 5, comment="Great", is_anonymous=True)

    with pytest.raises(Forbidden):
        participation.list_feedback(event.id, student)
    assert participation.list_feedback(event.id, owner).id == event.id
    assert participation.feedback_summary(event.id, student).id == event.id
    with pytest.raises(Unauthorized):
        participation.feedback_summary(event.id, None)


def test_rsvp_roster_is_admin_only(owner, club, make_user, make_event):
    event = make_event(owner, club, type=EventType.PUBLIC)
    student = make_user()
    participation.rsvp(event.id, student, RSVPStatus.GOING)

    with pytest.raises(Forbidden):
        participation.list_rsvps(event.id, student)
    assert len(participation.list_rsvps(event.id, owner).rsvps) == 1


def run_together(app, user_ids, action, expected):
    barrier = threading.Barrier(len(user_ids))
    results = []
    failures = []

    def attempt(user_id):
        with app.app_context():
            user = db.session.get(User, user_id)
            barrier.wait()
            try:
                action(user)
                results.append("ok")
            except expected:
                results.append("refused")
            except Exception as exc:
                failures.append(exc)

    threads = [threading.Thread(target=attempt, args=(uid,)) for uid in user_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, failures


def test_concurrent_rsvps_fill_exactly_one_seat(file_app, make_user, make_club, make_event):
    with file_app.app_context():
        owner = make_user(role=UserRole.CLUB_ADMIN)
        event_id = make_event(
            owner,
            make_club(owner),
            type=EventType.PUBLIC,
            registration_required=True,
            max_capacity=1,
        ).id
        user_ids = [make_user().id for _ in range(4)]

    results, failures = run_together(
        file_app,
        user_ids,
        lambda user: participation.rsvp(event_id, user, RSVPStatus.GOING),
        RegistrationClosed,
    )

    assert failures == []
    assert sorted(results) == ["ok", "refused", "refused", "refused"]
    with file_app.app_context():
        assert RSVP.query.filter_by(event_id=event_id, status=RSVPStatus.GOING).count() == 1


def test_concurrent_feedback_keeps_one_row(file_app, make_user, make_club, make_event):
    with file_app.app_context():
        owner = make_user(role=UserRole.CLUB_ADMIN)
        event = make_event(owner, make_club(owner), type=EventType.PUBLIC)
        event.start_datetime = datetime.utcnow() - timedelta(days=1)
        event.end_datetime = None
        db.session.commit()
        event_id = event.id
        user_id = make_user().id

    results, failures = run_together(
        file_app,
        [user_id, user_id],
        lambda user: participation.submit_feedback(event_id, user, 4),
        DuplicateFeedback,
    )

    assert failures == []
    assert sorted(results) == ["ok", "refused"]
    with file_app.app_context():
        assert Feedback.query.filter_by(event_id=event_id).count() == 1
