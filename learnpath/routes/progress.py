from flask import Blueprint, request, jsonify
from learnpath.extensions import db
from learnpath.models import Lesson, LessonProgress
from learnpath.errors import ValidationError, NotFoundError
from learnpath.utils.auth import get_current_user
from flask_jwt_extended import jwt_required
from datetime import datetime

bp = Blueprint("progress", __name__)

# Mark lesson complete / incomplete and record watch time
@bp.route("/lessons/<lesson_id>/progress", methods=["PUT"])
@jwt_required()
def update_lesson_progress(lesson_id):
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    completed = data.get("completed", False)
    watch_time = data.get("watchTime", 0)

    if not isinstance(completed, bool):
        raise ValidationError("completed must be a boolean")
    if isinstance(watch_time, bool) or not isinstance(watch_time, int) or watch_time < 0:
        raise ValidationError("watchTime must be a non-negative integer")

    if not db.session.get(Lesson, lesson_id):
        raise NotFoundError("Lesson not found")

    progress = LessonProgress.query.filter_by(
        user_id=user.id,
        lesson_id=lesson_id
    ).first()

    # If already exists, update it
    if not progress:
        progress = LessonProgress(user_id=user.id, lesson_id=lesson_id)
        db.session.add(progress)

    progress.completed = completed
    progress.completed_at = datetime.utcnow() if completed else None
    progress.watch_time = watch_time

    db.session.commit()
    return jsonify({"message": "Lesson progress updated"}), 200
