"""Single-writer discipline for club and event aggregates.

A mutation on one aggregate holds a process-local lock keyed by the aggregate
id and a ``SELECT ... FOR UPDATE`` row lock for the length of one database
transaction. The check (capacity, pending request, existing feedback) and the
write it guards therefore happen atomically with respect to any other
mutation of the same aggregate, while mutations of other aggregates proceed
in parallel.

The registry only keeps weak references: a lock lives while some caller is
holding or waiting on it, so idle aggregates cost nothing.
"""

import threading
import weakref
from contextlib import ExitStack, contextmanager

from flask import current_app

from .extensions import db
from .errors import NotFound


class AggregateLock:
    def __init__(self, key):
        self.key = key
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


_registry_guard = threading.Lock()
_aggregate_locks = weakref.WeakValueDictionary()


def _lock_for(kind, aggregate_id):
    key = (kind, aggregate_id)
    with _registry_guard:
        lock = _aggregate_locks.get(key)
        if lock is None:
            lock = _aggregate_locks[key] = AggregateLock(key)
        return lock


def tracked_locks():
    """Keys of the aggregate locks currently alive."""
    with _registry_guard:
        return set(_aggregate_locks.keys())


@contextmanager
def hold(kind, aggregate_ids):
    """Hold the locks of several aggregates of one kind, in id order."""
    with ExitStack() as stack:
        for aggregate_id in sorted(set(aggregate_ids)):
            stack.enter_context(_lock_for(kind, aggregate_id))
        yield


@contextmanager
def unit_of_work(kind, aggregate_id):
    """Serialize a mutation of one aggregate and commit it as one transaction.

    Any exception rolls the session back before the lock is released, so a
    rejected operation never leaves partial state behind.
    """
    lock = _lock_for(kind, aggregate_id)
    with lock:
        try:
            yield
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


def load_for_update(model, ident, label):
    """Load ``model`` by primary key with a row lock and fresh attribute state."""
    instance = db.session.get(model, ident, with_for_update=True, populate_existing=True)
    if instance is None:
        current_app.logger.info("%s %s not found", label, ident)
        raise NotFound(f"{label} not found.", resource=label.lower(), id=ident)
    return instance
