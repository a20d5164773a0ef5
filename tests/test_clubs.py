import pytest

from campusclubs.errors import DuplicateName, Forbidden, NotFound, ValidationError
from campusclubs.extensions import db
from campusclubs.models import (
    RSVP,
    AdminRole,
    Attendance,
    Club,
    ClubAdmin,
    ClubMember,
    Event,
    Feedback,
    JoinRequest,
    RSVPStatus,
    UserRole,
)
from campusclubs.services import clubs, membership, participation


def test_create_club_bootstraps_president(ctx, make_user, make_club):
    owner = make_user(role=UserRole.CLUB_ADMIN)
    club = make_club(owner)

    assert club.id is not None
    assert club.department == "Institution-wide"
    assert club.max_members == 100
    assert [(a.user_id, a.role) for a in club.admins] == [(owner.id, AdminRole.PRESIDENT)]
    assert club in owner.admin_clubs


def test_students_cannot_create_clubs(ctx, make_user, make_club):
    with pytest.raises(Forbidden):
        make_club(make_user())
    assert Club.query.count() == 0


def test_club_names_are_unique_ignoring_case(ctx, make_user, make_club):
    owner = make_user(role=UserRole.CLUB_ADMIN)
    make_club(owner, name="Chess Club")

    with pytest.raises(DuplicateName):
        make_club(owner, name="  chess   CLUB ")
    assert Club.query.count() == 1


def test_create_club_validates_fields(ctx, make_user, make_club):
    owner = make_user(role=UserRole.CLUB_ADMIN)
    with pytest.raises(ValidationError) as excinfo:
        make_club(owner, description="too short")
    assert excinfo.value.field == "description"

    with pytest.raises(ValidationError) as excinfo:
        make_club(owner, category="Knitting")
    assert excinfo.value.field == "category"

    with pytest.raises(ValidationError):
        make_club(owner, meeting_time="25:61")


def test_list_clubs_filters_and_paginates(ctx, make_user, make_club):
    owner = make_user(role=UserRole.CLUB_ADMIN)
    make_club(owner, name="Chess Club", category="Academic")
    make_club(owner, name="Football Club", category="Sports")
    hidden = make_club(owner, name="Old Club", category="Sports")
    clubs.update_club(hidden.id, owner, is_active=False)

    sports = clubs.list_clubs(category="Sports")
    assert [c.name for c in sports.items] == ["Football Club"]

    found = clubs.list_clubs(search="chess")
    assert found.total == 1

    page = clubs.list_clubs(per_page=1, page=2)
    assert page.total == 2
    assert len(page.items) == 1


def test_club_tags_are_normalized_and_searchable(ctx, make_user, make_club):
    owner = make_user(role=UserRole.CLUB_ADMIN)
    chess = make_club(
        owner, name="Chess Club", tags=["Strategy", " board  games ", "strategy"]
    )
    make_club(owner, name="Football Club", tags="outdoor, teams")

    assert chess.tags == ["strategy", "board games"]
    assert [c.name for c in clubs.list_clubs(search="BOARD").items] == ["Chess Club"]
    assert [c.name for c in clubs.list_clubs(search="teams").items] == ["Football Club"]

    clubs.update_club(chess.id, owner, tags="")
    assert chess.tags == []
    assert clubs.list_clubs(search="strategy").total == 0

    with pytest.raises(ValidationError) as excinfo:
        make_club(owner, tags=["x" * 31])
    assert excinfo.value.field == "tags"
    with pytest.raises(ValidationError):
        make_club(owner, tags=[f"tag{i}" for i in range(11)])


def test_list_clubs_sorting(ctx, make_user, make_club):
    owner = make_user(role=UserRole.CLUB_ADMIN)
    for name in ("beta Club", "Alpha Club", "Gamma Club"):
        make_club(owner, name=name)

    by_name = clubs.list_clubs(sort_by="name", sort_order="asc")
    assert [c.name for c in by_name.items] == ["Alpha Club", "beta Club", "Gamma Club"]
    by_name = clubs.list_clubs(sort_by="name", sort_order="desc")
    assert [c.name for c in by_name.items] == ["Gamma Club", "beta Club", "Alpha Club"]

    with pytest.raises(ValidationError) as excinfo:
        clubs.list_clubs(sort_by="password")
    assert excinfo.value.field == "sort_by"
    with pytest.raises(ValidationError) as excinfo:
        clubs.list_clubs(sort_order="sideways")
    assert excinfo.value.field == "sort_order"


def test_update_club_requires_admin_and_respects_members(ctx, make_user, make_club):
    owner = make_user(role=UserRole.CLUB_ADMIN)
    outsider = make_user(role=UserRole.CLUB_ADMIN)
    club = make_club(owner)
    membership.join(club.id, make_user())
    membership.join(club.id, make_user())

    with pytest.raises(Forbidden):
        clubs.update_club(club.id, outsider, focus="Something else")

    with pytest.raises(ValidationError) as excinfo:
        clubs.update_club(club.id, owner, max_members=1)
    assert excinfo.value.details["current"] == 2

    updated = clubs.update_club(club.id, owner, name="Robotics Guild", max_members=2)
    assert updated.name == "Robotics Guild"
    assert updated.name_key == "robotics guild"
    assert updated.max_members == 2


def test_get_missing_club(ctx):
    with pytest.raises(NotFound):
        clubs.get_club(404)


def test_delete_club_cascades_everything(
    ctx, make_user, make_club, make_event, move_to_past
):
    root = make_user(role=UserRole.SUPER_ADMIN)
    owner = make_user(role=UserRole.CLUB_ADMIN)
    student = make_user()
    applicant = make_user()
    club = make_club(owner)
    gated = make_club(owner, join_approval_required=True)
    membership.join(club.id, student)
    membership.join(gated.id, applicant)
    event = make_event(owner, club)
    participation.rsvp(event.id, student, RSVPStatus.GOING)
    move_to_past(event)
    participation.check_in(event.id, owner, student.id)
    participation.submit_feedback(event.id, student, 4)
    club_id, event_id = club.id, event.id

    with pytest.raises(Forbidden):
        clubs.delete_club(club_id, owner)

    clubs.delete_club(club_id, root)

    assert db.session.get(Club, club_id) is None
    assert db.session.get(Event, event_id) is None
    assert ClubMember.query.filter_by(club_id=club_id).count() == 0
    assert ClubAdmin.query.filter_by(club_id=club_id).count() == 0
    assert RSVP.query.filter_by(event_id=event_id).count() == 0
    assert Attendance.query.filter_by(event_id=event_id).count() == 0
    assert Feedback.query.filter_by(event_id=event_id).count() == 0
    assert student.joined_clubs == []
    assert student.event_rsvps == []
    assert [c.id for c in owner.admin_clubs] == [gated.id]
    assert JoinRequest.query.filter_by(club_id=gated.id).count() == 1

    with pytest.raises(NotFound):
        clubs.delete_club(club_id, root)
