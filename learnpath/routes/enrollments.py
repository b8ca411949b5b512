from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from learnpath.extensions import db
from learnpath.models import Course
from learnpath.errors import NotFoundError, AuthorizationError
from learnpath.services import enrollment as enrollment_service
from learnpath.utils.auth import get_current_user, require_course_manager

bp = Blueprint("enrollments", __name__)


# Free-course enrollment; paid courses go through /initialize-payment
@bp.route("/courses/<course_id>/enroll", methods=["POST"])
@jwt_required()
def enroll_course(course_id):
    user = get_current_user()
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if not course.is_free:
        raise AuthorizationError("Payment is required to enroll in this course")

    enrollment, created = enrollment_service.enroll(user.id, course.id)
    return jsonify(enrollment.to_dict()), 201 if created else 200


@bp.route("/my-enrollments", methods=["GET"])
@jwt_required()
def list_enrollments():
    user = get_current_user()
    return jsonify(enrollment_service.get_user_enrollments(user.id))


@bp.route("/enrollments/<course_id>/progress", methods=["PUT"])
@jwt_required()
def update_progress(course_id):
    user = get_current_user()
    data = request.get_json(silent=True) or {}

    enrollment = enrollment_service.update_progress(user.id, course_id, data.get("progress"))
    return jsonify({
        "message": "Progress updated successfully",
        "enrollment": enrollment.to_dict()
    }), 200


@bp.route("/courses/<course_id>/enrollments", methods=["GET"])
@jwt_required()
def course_enrollments(course_id):
    course = require_course_manager(get_current_user(), course_id)
    enrollments = enrollment_service.get_course_enrollments(course.id)
    return jsonify([e.to_dict() for e in enrollments])
