import gc
import threading

import pytest

from campusclubs.errors import NotFound
from campusclubs.extensions import db
from campusclubs.locking import hold, tracked_locks, unit_of_work
from campusclubs.models import Club, UserRole
from campusclubs.services import clubs


def test_idle_locks_leave_the_registry(ctx, make_user, make_club):
    club = make_club(make_user(role=UserRole.CLUB_ADMIN))

    with unit_of_work("club", club.id):
        assert ("club", club.id) in tracked_locks()
    with hold("event", [3, 1, 3]):
        assert {("event", 1), ("event", 3)} <= tracked_locks()
    gc.collect()

    assert not {("club", club.id), ("event", 1), ("event", 3)} & tracked_locks()


def test_same_aggregate_is_serialized():
    started = threading.Event()
    order = []

    def second():
        started.wait()
        with hold("club", [7]):
            order.append("second")

    thread = threading.Thread(target=second)
    with hold("club", [7]):
        thread.start()
        started.set()
        thread.join(timeout=0.2)
        order.append("first")
    thread.join()

    assert order == ["first", "second"]


def test_deleted_club_lock_is_released(ctx, make_user, make_club):
    root = make_user(role=UserRole.SUPER_ADMIN)
    club_id = make_club(make_user(role=UserRole.CLUB_ADMIN)).id

    clubs.delete_club(club_id, root)
    gc.collect()

    assert ("club", club_id) not in tracked_locks()
    assert db.session.get(Club, club_id) is None
    with pytest.raises(NotFound):
        clubs.delete_club(club_id, root)
