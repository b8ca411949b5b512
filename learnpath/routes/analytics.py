from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from learnpath.services import enrollment as enrollment_service
from learnpath.utils.auth import get_current_user, require_course_manager

bp = Blueprint("analytics", __name__)


@bp.route("/user", methods=["GET"])
@jwt_required()
def user_stats():
    """Return learning summary for the current user's dashboard"""
    user = get_current_user()
    return jsonify(enrollment_service.get_user_stats(user.id))


@bp.route("/course/<course_id>", methods=["GET"])
@jwt_required()
def course_stats(course_id):
    """Return enrollment summary for an instructor's course"""
    course = require_course_manager(get_current_user(), course_id)
    return jsonify(enrollment_service.get_course_stats(course.id))
