import enum
from datetime import datetime

from flask_login import UserMixin

from .extensions import db


class UserRole(enum.Enum):
    STUDENT = "student"
    CLUB_MEMBER = "club-member"
    CLUB_ADMIN = "club-admin"
    SUPER_ADMIN = "super-admin"


class MemberRole(enum.Enum):
    MEMBER = "member"
    VOLUNTEER = "volunteer"
    COORDINATOR = "coordinator"


class MemberStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AdminRole(enum.Enum):
    ADMIN = "admin"
    PRESIDENT = "president"
    VICE_PRESIDENT = "vice-president"
    SECRETARY = "secretary"
    TREASURER = "treasurer"


class EventType(enum.Enum):
    PUBLIC = "public"
    MEMBERS_ONLY = "members-only"
    INVITE_ONLY = "invite-only"


class EventStatus(enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RSVPStatus(enum.Enum):
    GOING = "going"
    MAYBE = "maybe"
    NOT_GOING = "not-going"


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    student_id = db.Column(db.String(50), unique=True)
    department = db.Column(db.String(20))
    year = db.Column(db.Integer)
    bio = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    memberships = db.relationship("ClubMember", back_populates="user")
    admin_roles = db.relationship("ClubAdmin", back_populates="user")
    rsvps = db.relationship("RSVP", back_populates="user")

    @property
    def is_super_admin(self):
        return self.role == UserRole.SUPER_ADMIN

    @property
    def joined_clubs(self):
        return [m.club for m in self.memberships if m.status == MemberStatus.ACTIVE]

    @property
    def admin_clubs(self):
        return [a.club for a in self.admin_roles]

    @property
    def event_rsvps(self):
        return [r for r in self.rsvps if r.status != RSVPStatus.NOT_GOING]


class TaggedMixin:
    tags_text = db.Column("tags", db.String(500), nullable=False, default="")

    @property
    def tags(self):
        return [tag for tag in (self.tags_text or "").split(",") if tag]

    @tags.setter
    def tags(self, values):
        self.tags_text = ",".join(values or [])


class Club(TaggedMixin, db.Model):
    __tablename__ = "clubs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    name_key = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(60), nullable=False)
    department = db.Column(db.String(60), nullable=False)
    focus = db.Column(db.String(200), nullable=False)
    contact_email = db.Column(db.String(255))
    meeting_day = db.Column(db.String(10))
    meeting_time = db.Column(db.String(5))
    meeting_location = db.Column(db.String(200))
    meeting_frequency = db.Column(db.String(20))
    max_members = db.Column(db.Integer, nullable=False, default=100)
    join_approval_required = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    established_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    members = db.relationship(
        "ClubMember",
        back_populates="club",
        cascade="all, delete-orphan",
        order_by="ClubMember.joined_at",
    )
    admins = db.relationship(
        "ClubAdmin",
        back_populates="club",
        cascade="all, delete-orphan",
        order_by="ClubAdmin.appointed_at",
    )
    pending_requests = db.relationship(
        "JoinRequest",
        back_populates="club",
        cascade="all, delete-orphan",
        order_by="JoinRequest.requested_at",
    )
    events = db.relationship(
        "Event",
        back_populates="club",
        cascade="all, delete-orphan",
        order_by="Event.start_datetime",
    )

    def member_entry(self, user_id):
        return next((m for m in self.members if m.user_id == user_id), None)

    def admin_entry(self, user_id):
        return next((a for a in self.admins if a.user_id == user_id), None)

    def is_member(self, user_id):
        entry = self.member_entry(user_id)
        return entry is not None and entry.status == MemberStatus.ACTIVE

    def is_admin(self, user_id):
        return self.admin_entry(user_id) is not None


class ClubMember(db.Model):
    __tablename__ = "club_members"

    id = db.Column(db.Integer, primary_key=True)
    club_id = db.Column(db.Integer, db.ForeignKey("clubs.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    role = db.Column(db.Enum(MemberRole), nullable=False, default=MemberRole.MEMBER)
    status = db.Column(db.Enum(MemberStatus), nullable=False, default=MemberStatus.ACTIVE)
    joined_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    club = db.relationship("Club", back_populates="members")
    user = db.relationship("User", back_populates="memberships")

    __table_args__ = (
        db.UniqueConstraint("club_id", "user_id", name="uniq_club_member"),
    )


class ClubAdmin(db.Model):
    __tablename__ = "club_admins"

    id = db.Column(db.Integer, primary_key=True)
    club_id = db.Column(db.Integer, db.ForeignKey("clubs.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    role = db.Column(db.Enum(AdminRole), nullable=False, default=AdminRole.ADMIN)
    appointed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    club = db.relationship("Club", back_populates="admins")
    user = db.relationship("User", back_populates="admin_roles")

    __table_args__ = (
        db.UniqueConstraint("club_id", "user_id", name="uniq_club_admin"),
    )


class JoinRequest(db.Model):
    __tablename__ = "join_requests"

    id = db.Column(db.Integer, primary_key=True)
    club_id = db.Column(db.Integer, db.ForeignKey("clubs.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    message = db.Column(db.String(500))
    requested_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    club = db.relationship("Club", back_populates="pending_requests")
    user = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("club_id", "user_id", name="uniq_join_request"),
    )


class Event(TaggedMixin, db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    club_id = db.Column(db.Integer, db.ForeignKey("clubs.id"), nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(30), nullable=False, default="other")
    type = db.Column(db.Enum(EventType), nullable=False, default=EventType.MEMBERS_ONLY)
    start_datetime = db.Column(db.DateTime, nullable=False)
    end_datetime = db.Column(db.DateTime)
    max_capacity = db.Column(db.Integer, nullable=False, default=100)
    registration_required = db.Column(db.Boolean, nullable=False, default=False)
    registration_deadline = db.Column(db.DateTime)
    status = db.Column(db.Enum(EventStatus), nullable=False, default=EventStatus.PUBLISHED)
    views = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    club = db.relationship("Club", back_populates="events")
    created_by = db.relationship("User")
    rsvps = db.relationship(
        "RSVP",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="RSVP.rsvp_at",
    )
    attendees = db.relationship(
        "Attendance",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Attendance.checked_in_at",
    )
    feedback = db.relationship(
        "Feedback",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Feedback.submitted_at",
    )

    def rsvp_for(self, user_id):
        return next((r for r in self.rsvps if r.user_id == user_id), None)


class RSVP(db.Model):
    __tablename__ = "event_rsvps"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.Enum(RSVPStatus), nullable=False)
    note = db.Column(db.String(500))
    rsvp_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    event = db.relationship("Event", back_populates="rsvps")
    user = db.relationship("User", back_populates="rsvps")

    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uniq_event_rsvp"),
    )


class Attendance(db.Model):
    __tablename__ = "event_attendance"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    checked_in_by_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    checked_in_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    event = db.relationship("Event", back_populates="attendees")
    user = db.relationship("User", foreign_keys=[user_id])
    checked_in_by = db.relationship("User", foreign_keys=[checked_in_by_id])

    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uniq_event_attendance"),
    )


class Feedback(db.Model):
    __tablename__ = "event_feedback"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text)
    is_anonymous = db.Column(db.Boolean, nullable=False, default=False)
    submitted_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    event = db.relationship("Event", back_populates="feedback")
    user = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uniq_event_feedback"),
    )
