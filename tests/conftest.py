import itertools
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from campusclubs import create_app
from campusclubs.blueprints.auth import LOGIN_ATTEMPTS
from campusclubs.extensions import db
from campusclubs.models import User, UserRole
from campusclubs.services import clubs, events


PASSWORD = "Password123"


@pytest.fixture()
def app():
    app = create_app("testing")
    LOGIN_ATTEMPTS.clear()
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture()
def file_app(tmp_path):
    app = create_app(
        "testing",
        test_config={
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{(tmp_path / 'clubs.db').as_posix()}",
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"check_same_thread": False}},
        },
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user():
    counter = itertools.count(1)

    def factory(role=UserRole.STUDENT, name=None, email=None, is_active=True):
        index = next(counter)
        user = User(
            role=role,
            name=name or f"User {index}",
            email=email or f"user{index}@example.com",
            student_id=f"S{1000 + index}",
            password_hash=generate_password_hash(PASSWORD),
            is_active=is_active,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return factory


@pytest.fixture()
def make_club():
    counter = itertools.count(1)

    def factory(owner, **overrides):
        index = next(counter)
        fields = {
            "name": f"Robotics Club {index}",
            "description": "Hands-on robotics projects every week.",
            "category": "Technical",
            "focus": "Robotics and embedded projects",
        }
        fields.update(overrides)
        return clubs.create_club(owner, **fields)

    return factory


@pytest.fixture()
def make_event():
    def factory(owner, club, **overrides):
        start = datetime.utcnow() + timedelta(days=7)
        fields = {
            "title": "Build Night",
            "description": "Bring your laptop and a project idea.",
            "location": "Lab 2",
            "start_datetime": start,
            "end_datetime": start + timedelta(hours=2),
        }
        fields.update(overrides)
        return events.create_event(owner, club.id, **fields)

    return factory


@pytest.fixture()
def move_to_past():
    def mover(event, days=1):
        event.start_datetime = datetime.utcnow() - timedelta(days=days)
        event.end_datetime = None
        event.registration_deadline = None
        db.session.commit()
        return event

    return mover


@pytest.fixture()
def login():
    def do_login(client, email, password=PASSWORD):
        return client.post("/auth/login", json={"email": email, "password": password})

    return do_login
