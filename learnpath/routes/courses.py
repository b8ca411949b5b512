from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from learnpath.extensions import db
from learnpath.models import Course, Module, Lesson, User
from learnpath.models.course import COURSE_STATUSES
from learnpath.errors import ValidationError, NotFoundError
from learnpath.helpers.currency import to_decimal, format_price
from learnpath.utils.auth import get_current_user, role_required, require_course_manager

bp = Blueprint("courses", __name__)

EDITABLE_FIELDS = (
    "title", "description", "short_description", "category", "price",
    "thumbnail_url", "status", "duration", "level",
)


def course_to_dict(course, instructor=None):
    instructor = instructor or course.instructor
    return {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "shortDescription": course.short_description,
        "instructorId": course.instructor_id,
        "instructorName": instructor.full_name if instructor else None,
        "category": course.category,
        "price": format_price(course.price),
        "thumbnailUrl": course.thumbnail_url,
        "status": course.status,
        "duration": course.duration,
        "level": course.level,
        "rating": format_price(course.rating),
        "studentsCount": course.students_count,
        "createdAt": course.created_at.isoformat() if course.created_at else None,
        "updatedAt": course.updated_at.isoformat() if course.updated_at else None,
    }


def _clean_course_fields(data, partial=False):
    fields = {k: data[k] for k in EDITABLE_FIELDS if k in data}

    if not partial or "title" in fields:
        title = (fields.get("title") or "").strip()
        if not title:
            raise ValidationError("Missing title")
        fields["title"] = title

    if "price" in fields:
        price = to_decimal(fields["price"])
        if price is None or price < 0:
            raise ValidationError("price must be a non-negative number")
        fields["price"] = price

    if "status" in fields and fields["status"] not in COURSE_STATUSES:
        raise ValidationError("Invalid course status")

    if fields.get("duration") is not None:
        if isinstance(fields["duration"], bool) or not isinstance(fields["duration"], int) or fields["duration"] < 0:
            raise ValidationError("duration must be a non-negative integer")

    return fields


# List published courses
@bp.route("/courses", methods=["GET"])
def list_courses():
    limit = request.args.get("limit", default=20, type=int)
    category = request.args.get("category")
    search = request.args.get("search")

    query = (
        db.session.query(Course, User)
        .outerjoin(User, Course.instructor_id == User.id)
        .filter(Course.status == "published")
    )
    if category:
        query = query.filter(Course.category == category)
    if search:
        query = query.filter(Course.title.ilike(f"%{search}%"))

    courses = query.order_by(Course.created_at.desc()).limit(limit).all()
    return jsonify([course_to_dict(c, instructor) for c, instructor in courses])


@bp.route("/courses/<course_id>", methods=["GET"])
def get_course(course_id):
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found")
    return jsonify(course_to_dict(course))


@bp.route("/courses", methods=["POST"])
@role_required("instructor", "admin")
def create_course():
    user = get_current_user()
    fields = _clean_course_fields(request.get_json(silent=True) or {})

    course = Course(instructor_id=user.id, **fields)
    db.session.add(course)
    db.session.commit()
    return jsonify(course_to_dict(course)), 201


@bp.route("/courses/<course_id>", methods=["PUT"])
@jwt_required()
def update_course(course_id):
    course = require_course_manager(get_current_user(), course_id)
    fields = _clean_course_fields(request.get_json(silent=True) or {}, partial=True)

    for key, value in fields.items():
        setattr(course, key, value)
    db.session.commit()
    return jsonify(course_to_dict(course))


@bp.route("/my-courses", methods=["GET"])
@jwt_required()
def my_courses():
    user = get_current_user()
    courses = (
        Course.query.filter_by(instructor_id=user.id)
        .order_by(Course.created_at.desc())
        .all()
    )
    return jsonify([course_to_dict(c, user) for c in courses])


# Modules
@bp.route("/courses/<course_id>/modules", methods=["GET"])
def list_modules(course_id):
    modules = Module.query.filter_by(course_id=course_id).order_by(Module.order).all()
    return jsonify([
        {
            "id": m.id,
            "courseId": m.course_id,
            "title": m.title,
            "description": m.description,
            "order": m.order,
        }
        for m in modules
    ])


@bp.route("/courses/<course_id>/modules", methods=["POST"])
@jwt_required()
def create_module(course_id):
    course = require_course_manager(get_current_user(), course_id)
    data = request.get_json(silent=True) or {}
    title = (data.get("title") or "").strip()
    order = data.get("order")

    if not title:
        raise ValidationError("Missing title")
    if isinstance(order, bool) or not isinstance(order, int):
        raise ValidationError("order must be an integer")

    module = Module(course_id=course.id, title=title, description=data.get("description"), order=order)
    db.session.add(module)
    db.session.commit()
    return jsonify({"message": "Module created", "id": module.id}), 201


# Lessons
@bp.route("/modules/<module_id>/lessons", methods=["GET"])
def list_lessons(module_id):
    lessons = Lesson.query.filter_by(module_id=module_id).order_by(Lesson.order).all()
    result = []
    for l in lessons:
        result.append({
            "id": l.id,
            "moduleId": l.module_id,
            "title": l.title,
            "content": l.content,
            "videoUrl": l.video_url,
            "duration": l.duration,
            "order": l.order,
            "isFree": l.is_free,
            "createdAt": l.created_at.isoformat() if l.created_at else None,
        })
    return jsonify(result)


@bp.route("/modules/<module_id>/lessons", methods=["POST"])
@jwt_required()
def create_lesson(module_id):
    module = db.session.get(Module, module_id)
    if not module:
        raise NotFoundError("Module not found")
    require_course_manager(get_current_user(), module.course_id)

    data = request.get_json(silent=True) or {}
    title = (data.get("title") or "").strip()
    order = data.get("order")

    if not title:
        raise ValidationError("Missing title")
    if isinstance(order, bool) or not isinstance(order, int):
        raise ValidationError("order must be an integer")

    lesson = Lesson(
        module_id=module.id,
        title=title,
        content=data.get("content"),
        video_url=data.get("video_url"),
        duration=data.get("duration"),
        order=order,
        is_free=bool(data.get("is_free", False))
    )
    db.session.add(lesson)
    db.session.commit()
    return jsonify({"message": "Lesson created", "id": lesson.id}), 201
