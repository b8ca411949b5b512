from decimal import Decimal, ROUND_HALF_UP
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from learnpath.extensions import db
from learnpath.models import Course, Review, User
from learnpath.errors import ValidationError, NotFoundError
from learnpath.utils.auth import get_current_user

bp = Blueprint("reviews", __name__)


@bp.route("/courses/<course_id>/reviews", methods=["POST"])
@jwt_required()
def create_review(course_id):
    user = get_current_user()
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found")

    data = request.get_json(silent=True) or {}
    rating = data.get("rating")
    comment = (data.get("comment") or "").strip()

    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("rating must be an integer between 1 and 5")

    review = Review(user_id=user.id, course_id=course.id, rating=rating, comment=comment or None)
    db.session.add(review)
    db.session.flush()

    # Keep the denormalized course rating in the same transaction
    avg_rating = (
        db.session.query(func.avg(Review.rating))
        .filter(Review.course_id == course.id)
        .scalar()
    )
    if avg_rating is not None:
        course.rating = Decimal(str(avg_rating)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    db.session.commit()
    return jsonify({
        "id": review.id,
        "rating": review.rating,
        "comment": review.comment,
        "courseId": review.course_id,
        "userId": review.user_id,
        "createdAt": review.created_at.isoformat()
    }), 201


@bp.route("/courses/<course_id>/reviews", methods=["GET"])
def list_reviews(course_id):
    reviews = (
        db.session.query(Review, User)
        .outerjoin(User, Review.user_id == User.id)
        .filter(Review.course_id == course_id)
        .order_by(Review.created_at.desc())
        .all()
    )
    return jsonify([
        {
            "id": r.id,
            "rating": r.rating,
            "comment": r.comment,
            "createdAt": r.created_at.isoformat(),
            "userName": u.full_name if u else None,
        }
        for r, u in reviews
    ])
