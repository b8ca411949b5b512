from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import create_access_token, jwt_required
from learnpath.extensions import db
from learnpath.models import User
from learnpath.errors import ValidationError, ConflictError
from learnpath.utils.auth import get_current_user

bp = Blueprint("auth", __name__)

SELF_SERVICE_ROLES = ("student", "instructor")


def user_to_dict(user):
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": user.role,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


@bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password")
    first_name = (data.get("first_name") or "").strip().title()
    last_name = (data.get("last_name") or "").strip().title()
    role = data.get("role", "student")

    # Validate input
    if not all([email, password]):
        raise ValidationError("Missing required fields")
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError("Invalid role")

    if User.query.filter_by(email=email).first():
        raise ConflictError("Email already exists.")

    user = User(email=email, first_name=first_name or None, last_name=last_name or None, role=role)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    current_app.logger.info(f"Registered {role} {email}")
    return jsonify(user_to_dict(user)), 201


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({"error": "Invalid email or password"}), 401

    access_token = create_access_token(identity=user.id)
    return jsonify({
        "access_token": access_token,
        "user": user_to_dict(user)
    }), 200


@bp.route("/user", methods=["GET"])
@jwt_required()
def get_auth_user():
    return jsonify(user_to_dict(get_current_user()))
