from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from learnpath.services import payments
from learnpath.services.paystack import SIGNATURE_HEADER
from learnpath.utils.auth import get_current_user

bp = Blueprint("payments", __name__)


@bp.route("/initialize-payment", methods=["POST"])
@jwt_required()
def initialize_payment():
    """Initialize a Paystack transaction (or enroll directly for free courses)."""
    data = request.get_json(silent=True) or {}
    user = get_current_user()

    result = payments.initialize_payment(
        user,
        data.get("courseId"),
        data.get("amount"),
        callback_base=current_app.config.get("FRONTEND_URL") or request.host_url,
    )
    status = 201 if result.get("free") else 200
    return jsonify(result), status


# Paystack calls this; authenticated by signature, not JWT
@bp.route("/paystack/webhook", methods=["POST"])
def paystack_webhook():
    result = payments.handle_webhook(
        request.get_data(),
        request.headers.get(SIGNATURE_HEADER)
    )
    return jsonify(result), 200


@bp.route("/verify-payment", methods=["POST"])
@jwt_required()
def verify_payment():
    data = request.get_json(silent=True) or {}
    user = get_current_user()

    result = payments.verify_payment(user, data.get("reference"))
    return jsonify(result), 200 if result["success"] else 400
