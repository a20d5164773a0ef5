from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from ..constants import (
    PASSWORD_MIN_LENGTH,
    STUDENT_DEPARTMENTS,
    USER_BIO_MAX,
    USER_NAME_LENGTH,
)
from ..errors import Conflict, Unauthorized, ValidationError
from ..extensions import db
from ..models import User, UserRole
from ..rbac import Action, authorize
from ..validators import choice, clean_text


def register_user(name, email, password, student_id=None, department=None, year=None, bio=None):
    name = clean_text("name", name, *USER_NAME_LENGTH)
    email = clean_text("email", email, max_length=255)
    if "@" not in email:
        raise ValidationError("Please enter a valid email.", field="email")
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters.",
            field="password",
        )
    if department is not None:
        choice("department", department, STUDENT_DEPARTMENTS)
    if year is not None and (
        isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 4
    ):
        raise ValidationError("year must be between 1 and 4.", field="year")

    user = User(
        role=UserRole.STUDENT,
        name=name,
        email=email.lower(),
        password_hash=generate_password_hash(password),
        student_id=clean_text("student_id", student_id, max_length=50, required=False),
        department=department,
        year=year,
        bio=clean_text("bio", bio, max_length=USER_BIO_MAX, required=False),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Email or student number already in use.", field="email")
    current_app.logger.info("User %s registered", user.id)
    return user


def authenticate(email, password):
    user = User.query.filter_by(email=(email or "").strip().lower()).first()
    if user is None or not check_password_hash(user.password_hash, password or ""):
        raise Unauthorized("Invalid credentials.")
    if not user.is_active:
        raise Unauthorized("Account is inactive. Please contact admin.")
    user.last_login_at = datetime.utcnow()
    db.session.commit()
    return user


def get_profile(user):
    authorize(user, Action.VIEW_PROFILE)
    return user
