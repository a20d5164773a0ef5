from datetime import datetime, timedelta

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ..errors import TooManyAttempts, Unauthorized
from ..forms.auth import LoginForm, RegisterForm
from ..rbac import current_actor
from ..serializers import user_profile, user_summary
from ..services.users import authenticate, get_profile, register_user
from ..utils import validate_form


auth_bp = Blueprint("auth", __name__)

LOGIN_ATTEMPTS = {}


def _rate_limited(ip_address):
    now = datetime.utcnow()
    window = current_app.config.get("LOGIN_WINDOW_SECONDS", 300)
    window_start = now - timedelta(seconds=window)
    attempts = LOGIN_ATTEMPTS.get(ip_address, [])
    attempts = [ts for ts in attempts if ts > window_start]
    LOGIN_ATTEMPTS[ip_address] = attempts
    return len(attempts) >= current_app.config.get("LOGIN_MAX_ATTEMPTS", 5)


def _record_attempt(ip_address):
    LOGIN_ATTEMPTS.setdefault(ip_address, []).append(datetime.utcnow())


@auth_bp.route("/csrf-token")
def csrf_token():
    return jsonify({"csrf_token": generate_csrf()})


@auth_bp.route("/register", methods=["POST"])
def register():
    form = validate_form(RegisterForm())
    user = register_user(
        name=form.name.data,
        email=form.email.data,
        password=form.password.data,
        student_id=form.student_id.data or None,
        department=form.department.data or None,
        year=form.year.data,
        bio=form.bio.data or None,
    )
    return jsonify({"user": user_summary(user)}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    ip_address = request.remote_addr or "unknown"
    if _rate_limited(ip_address):
        raise TooManyAttempts()

    form = validate_form(LoginForm())
    try:
        user = authenticate(form.email.data, form.password.data)
    except Unauthorized:
        _record_attempt(ip_address)
        raise
    login_user(user)
    return jsonify({"user": user_profile(user)})


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"message": "Logged out."})


@auth_bp.route("/me")
def me():
    user = get_profile(current_actor())
    return jsonify({"user": user_profile(user)})
