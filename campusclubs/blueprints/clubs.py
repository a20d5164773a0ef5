from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_login import login_required

from ..forms.clubs import AdminForm, ClubForm, JoinForm, MemberUpdateForm
from ..models import AdminRole
from ..rbac import current_actor
from ..serializers import (
    admin_to_dict,
    club_to_dict,
    event_to_dict,
    join_outcome_to_dict,
    member_to_dict,
    membership_roster,
    page_to_dict,
    request_to_dict,
)
from ..services import clubs, events, membership
from ..utils import get_flag, get_page, get_per_page, submitted_data, validate_form


clubs_bp = Blueprint("clubs", __name__)


@clubs_bp.route("", methods=["GET"])
def list_clubs():
    now = datetime.utcnow()
    page = clubs.list_clubs(
        category=request.args.get("category"),
        department=request.args.get("department"),
        search=request.args.get("search", "").strip() or None,
        sort_by=request.args.get("sort_by", "created_at"),
        sort_order=request.args.get("sort_order", "desc"),
        page=get_page(),
        per_page=get_per_page(),
    )
    return jsonify(page_to_dict(page, lambda club: club_to_dict(club, now)))


@clubs_bp.route("", methods=["POST"])
@login_required
def create_club():
    form = validate_form(ClubForm())
    club = clubs.create_club(current_actor(), **submitted_data(form))
    return jsonify({"club": club_to_dict(club)}), 201


@clubs_bp.route("/<int:club_id>", methods=["GET"])
def club_detail(club_id):
    return jsonify({"club": club_to_dict(clubs.get_club(club_id))})


@clubs_bp.route("/<int:club_id>", methods=["PATCH"])
@login_required
def update_club(club_id):
    form = validate_form(ClubForm())
    club = clubs.update_club(club_id, current_actor(), **submitted_data(form))
    return jsonify({"club": club_to_dict(club)})


@clubs_bp.route("/<int:club_id>", methods=["DELETE"])
@login_required
def delete_club(club_id):
    clubs.delete_club(club_id, current_actor())
    return jsonify({"message": "Club deleted."})


@clubs_bp.route("/<int:club_id>/join", methods=["POST"])
@login_required
def join_club(club_id):
    form = validate_form(JoinForm())
    outcome = membership.join(club_id, current_actor(), message=form.message.data)
    status_code = 201 if outcome.status == membership.JOINED else 202
    return jsonify(join_outcome_to_dict(outcome)), status_code


@clubs_bp.route("/<int:club_id>/leave", methods=["POST"])
@login_required
def leave_club(club_id):
    membership.leave(club_id, current_actor())
    return jsonify({"message": "You have left the club."})


@clubs_bp.route("/<int:club_id>/members", methods=["GET"])
@login_required
def club_members(club_id):
    club = membership.list_members(club_id, current_actor())
    return jsonify(membership_roster(club))


@clubs_bp.route("/<int:club_id>/members/<int:user_id>", methods=["PATCH"])
@login_required
def update_member(club_id, user_id):
    form = validate_form(MemberUpdateForm())
    member = membership.update_member(
        club_id,
        current_actor(),
        user_id,
        role=form.role.data or None,
        status=form.status.data or None,
    )
    return jsonify({"member": member_to_dict(member)})


@clubs_bp.route("/<int:club_id>/requests", methods=["GET"])
@login_required
def join_requests(club_id):
    pending = membership.list_requests(club_id, current_actor())
    return jsonify({"requests": [request_to_dict(r) for r in pending]})


@clubs_bp.route("/<int:club_id>/requests/<int:user_id>/approve", methods=["POST"])
@login_required
def approve_request(club_id, user_id):
    member = membership.approve_request(club_id, current_actor(), user_id)
    return jsonify({"member": member_to_dict(member)})


@clubs_bp.route("/<int:club_id>/requests/<int:user_id>/reject", methods=["POST"])
@login_required
def reject_request(club_id, user_id):
    membership.reject_request(club_id, current_actor(), user_id)
    return jsonify({"message": "Join request rejected."})


@clubs_bp.route("/<int:club_id>/admins", methods=["POST"])
@login_required
def add_admin(club_id):
    form = validate_form(AdminForm())
    admin = membership.add_admin(
        club_id,
        current_actor(),
        form.user_id.data,
        role=form.role.data or AdminRole.ADMIN,
    )
    return jsonify({"admin": admin_to_dict(admin)}), 201


@clubs_bp.route("/<int:club_id>/events", methods=["GET"])
def club_events(club_id):
    viewer = current_actor()
    upcoming = events.list_club_events(
        club_id, upcoming=get_flag("upcoming"), limit=get_per_page()
    )
    return jsonify({"events": [event_to_dict(e, viewer) for e in upcoming]})
