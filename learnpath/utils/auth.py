from functools import wraps
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from learnpath.extensions import db
from learnpath.models import User, Course
from learnpath.errors import AuthorizationError, NotFoundError


def get_current_user():
    user = db.session.get(User, get_jwt_identity())
    if not user:
        raise NotFoundError("User not found")
    return user


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if get_current_user().role not in roles:
                raise AuthorizationError("You do not have permission to perform this action")
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def can_manage_course(user, course):
    """Admins manage every course; instructors only their own."""
    if user.role == "admin":
        return True
    return user.role == "instructor" and course.instructor_id == user.id


def require_course_manager(user, course_id):
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if not can_manage_course(user, course):
        raise AuthorizationError("Not authorized to manage this course")
    return course
