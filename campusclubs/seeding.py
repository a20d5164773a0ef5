"""Demo data built through the service layer.

Clubs, memberships, RSVPs, check-ins and feedback are created with the same
operations the API uses, so capacity and uniqueness rules hold for seeded data.
Past events are produced by scheduling them normally and then moving their
start time back before attendance and feedback are recorded.
"""

import random
from datetime import datetime, timedelta

from faker import Faker
from flask import current_app

from .constants import CLUB_CATEGORIES, DEPARTMENTS, EVENT_CATEGORIES, MEETING_DAYS
from .errors import Conflict
from .extensions import db
from .models import Club, EventType, RSVPStatus, User, UserRole
from .services import clubs, events, membership, participation
from .services.users import register_user


def seed_super_admin(email, password, name="Super Admin"):
    admin = User.query.filter_by(email=email).first()
    if admin:
        return admin, False
    admin = register_user(name=name, email=email, password=password)
    admin.role = UserRole.SUPER_ADMIN
    db.session.commit()
    return admin, True


def seed_students(fake, count, password):
    students = []
    for index in range(count):
        students.append(
            register_user(
                name=fake.first_name(),
                email=fake.unique.email(),
                password=password,
                student_id=f"S{10000 + index}",
                department=random.choice(["CSE", "ISE", "ECE", "EEE", "ME", "CE"]),
                year=random.randint(1, 4),
            )
        )
    return students


def seed_clubs(fake, owners):
    created = []
    for owner in owners:
        owner.role = UserRole.CLUB_ADMIN
        db.session.commit()
        club = clubs.create_club(
            owner,
            name=f"{fake.unique.word().title()} {random.choice(['Club', 'Society', 'Association'])}",
            description=fake.paragraph(nb_sentences=4)[:1000].ljust(20, "."),
            category=random.choice(CLUB_CATEGORIES),
            department=random.choice(DEPARTMENTS),
            focus=fake.sentence()[:200],
            contact_email=fake.unique.company_email(),
            meeting_day=random.choice(MEETING_DAYS),
            meeting_time=f"{random.randint(9, 19):02d}:00",
            meeting_location=f"Room {random.randint(100, 450)}",
            meeting_frequency="weekly",
            max_members=random.choice([20, 40, 60]),
            join_approval_required=random.random() < 0.3,
            tags=fake.words(nb=3, unique=True),
        )
        created.append(club)
    return created


def seed_memberships(fake, club_list, students):
    for club in club_list:
        candidates = random.sample(students, k=min(len(students), random.randint(5, 15)))
        for student in candidates:
            try:
                outcome = membership.join(club.id, student, message=fake.sentence())
            except Conflict:
                continue
            if outcome.status == membership.PENDING and random.random() < 0.6:
                owner = club.admins[0].user
                membership.approve_request(club.id, owner, student.id)


def seed_events(fake, club_list, now=None):
    now = now or datetime.utcnow()
    scheduled, past = [], []
    for club in club_list:
        owner = club.admins[0].user
        for offset in (random.randint(7, 40), random.randint(2, 6)):
            start = now + timedelta(days=offset)
            event = events.create_event(
                owner,
                club.id,
                title=fake.catch_phrase()[:200],
                description=fake.paragraph(nb_sentences=5)[:2000].ljust(10, "."),
                location=fake.city(),
                category=random.choice(EVENT_CATEGORIES),
                type=random.choice([EventType.PUBLIC, EventType.MEMBERS_ONLY]),
                start_datetime=start,
                end_datetime=start + timedelta(hours=random.randint(2, 4)),
                max_capacity=random.choice([25, 40, 60]),
                tags=fake.words(nb=2, unique=True),
            )
            scheduled.append(event)
    for event in scheduled:
        for entry in event.club.members:
            status = random.choice(list(RSVPStatus))
            try:
                participation.rsvp(event.id, entry.user, status)
            except Conflict:
                continue
    # every second event is moved into the past to carry attendance and ratings
    for event in scheduled[1::2]:
        event.start_datetime = now - timedelta(days=random.randint(1, 20))
        event.end_datetime = event.start_datetime + timedelta(hours=2)
        db.session.commit()
        past.append(event)
        owner = event.club.admins[0].user
        for entry in event.rsvps:
            if entry.status != RSVPStatus.GOING:
                continue
            participation.check_in(event.id, owner, entry.user_id)
            if random.random() < 0.7:
                participation.submit_feedback(
                    event.id,
                    entry.user,
                    random.randint(2, 5),
                    comment=fake.sentence(),
                    is_anonymous=random.random() < 0.3,
                )
    return scheduled, past


def seed_all(
    student_count=40,
    club_count=6,
    admin_email="admin@university.edu",
    admin_password="AdminPass123",
    student_password="StudentPass123",
    seed_value=42,
    reset=False,
):
    """Populate the current app's database; returns counts or None if data exists."""
    fake = Faker()
    Faker.seed(seed_value)
    random.seed(seed_value)

    if reset:
        db.drop_all()
    db.create_all()

    if User.query.filter_by(role=UserRole.STUDENT).count() or Club.query.count():
        current_app.logger.info("Demo data already exists, skipping seed")
        return None

    admin, _ = seed_super_admin(admin_email, admin_password)
    students = seed_students(fake, student_count, student_password)
    owners = students[:club_count]
    club_list = seed_clubs(fake, owners)
    seed_memberships(fake, club_list, students[club_count:])
    scheduled, past = seed_events(fake, club_list)

    summary = {
        "admin": admin.email,
        "students": len(students),
        "clubs": len(club_list),
        "events": len(scheduled),
        "past_events": len(past),
    }
    current_app.logger.info("Seeded demo data: %s", summary)
    return summary
