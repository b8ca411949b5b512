from datetime import datetime
from flask import current_app
from sqlalchemy import func, case
from sqlalchemy.exc import IntegrityError
from learnpath.extensions import db
from learnpath.models import Enrollment, Course, User
from learnpath.errors import ValidationError, NotFoundError, ConflictError


def get_enrollment(user_id, course_id):
    return Enrollment.query.filter_by(user_id=user_id, course_id=course_id).first()


def enroll(user_id, course_id):
    """Enroll a user in a course and return ``(enrollment, created)``.

    Calling it twice, sequentially or concurrently, for the same pair leaves
    one row and one counter increment. The unique constraint on
    (user_id, course_id) decides the winner; the loser gets the existing row
    back with ``created=False``.
    """
    if not db.session.get(User, user_id):
        raise NotFoundError("User not found")
    if not db.session.get(Course, course_id):
        raise NotFoundError("Course not found")

    existing = get_enrollment(user_id, course_id)
    if existing:
        return existing, False

    try:
        enrollment = _insert_enrollment(user_id, course_id)
    except ConflictError:
        db.session.rollback()
        existing = get_enrollment(user_id, course_id)
        if existing is None:
            raise
        current_app.logger.info(f"Enrollment for user {user_id} in course {course_id} already exists")
        return existing, False

    db.session.commit()
    current_app.logger.info(f"User {user_id} enrolled in course {course_id}")
    return enrollment, True


def _insert_enrollment(user_id, course_id):
    # insert + counter bump share one transaction; caller commits
    enrollment = Enrollment(user_id=user_id, course_id=course_id, status="active", progress=0)
    db.session.add(enrollment)
    try:
        db.session.flush()
    except IntegrityError as e:
        raise ConflictError("Already enrolled in this course") from e

    Course.query.filter_by(id=course_id).update(
        {Course.students_count: Course.students_count + 1},
        synchronize_session=False
    )
    return enrollment


def parse_progress(value):
    if isinstance(value, bool):
        raise ValidationError("Progress must be an integer between 0 and 100")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or not 0 <= value <= 100:
        raise ValidationError("Progress must be an integer between 0 and 100")
    return value


def apply_progress(enrollment, progress):
    """Derive status/completed_at from progress. Lower values un-complete."""
    enrollment.progress = progress
    if progress >= 100:
        enrollment.status = "completed"
        if enrollment.completed_at is None:
            enrollment.completed_at = datetime.utcnow()
    else:
        enrollment.status = "active"
        enrollment.completed_at = None


def update_progress(user_id, course_id, progress):
    progress = parse_progress(progress)
    enrollment = get_enrollment(user_id, course_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found")

    apply_progress(enrollment, progress)
    db.session.commit()
    return enrollment


def get_user_enrollments(user_id):
    rows = (
        db.session.query(Enrollment, Course, User)
        .outerjoin(Course, Enrollment.course_id == Course.id)
        .outerjoin(User, Course.instructor_id == User.id)
        .filter(Enrollment.user_id == user_id)
        .order_by(Enrollment.enrolled_at.desc())
        .all()
    )

    result = []
    for e, course, instructor in rows:
        result.append({
            "id": e.id,
            "status": e.status,
            "progress": e.progress,
            "enrolledAt": e.enrolled_at.isoformat() if e.enrolled_at else None,
            "completedAt": e.completed_at.isoformat() if e.completed_at else None,
            "courseId": e.course_id,
            "courseTitle": course.title if course else None,
            "courseDescription": course.short_description if course else None,
            "courseThumbnail": course.thumbnail_url if course else None,
            "courseInstructor": instructor.full_name if instructor else None,
        })
    return result


def get_course_enrollments(course_id):
    return Enrollment.query.filter_by(course_id=course_id).all()


def get_user_stats(user_id):
    completed = Enrollment.status == "completed"
    total, completed_count, hours = (
        db.session.query(
            func.count(Enrollment.id),
            func.count(case((completed, 1))),
            func.coalesce(func.sum(case((completed, Course.duration), else_=0)), 0),
        )
        .select_from(Enrollment)
        .outerjoin(Course, Enrollment.course_id == Course.id)
        .filter(Enrollment.user_id == user_id)
        .one()
    )
    return {
        "totalEnrollments": int(total),
        "completedCourses": int(completed_count),
        "totalHoursLearned": int(hours or 0),
    }


def get_course_stats(course_id):
    total, completed_count, avg_progress = (
        db.session.query(
            func.count(Enrollment.id),
            func.count(case((Enrollment.status == "completed", 1))),
            func.avg(Enrollment.progress),
        )
        .filter(Enrollment.course_id == course_id)
        .one()
    )
    return {
        "totalStudents": int(total),
        "completedStudents": int(completed_count),
        "avgProgress": round(float(avg_progress), 2) if avg_progress is not None else 0,
    }
