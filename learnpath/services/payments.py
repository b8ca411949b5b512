"""
Paid enrollment flow.

Each checkout attempt is a ``PaymentTransaction`` keyed by its reference::

    created -> initialized -> webhook_confirmed | client_verified | failed

``initialize_payment`` only persists the record once Paystack has accepted
the transaction, so a timed-out call leaves nothing behind and can be
retried. The webhook and the client-side verify call race for the same
reference; both enroll through ``enrollment.enroll`` (idempotent) and then
try a conditional status update that only the first caller wins.
"""

import json
import time
from datetime import datetime

from flask import current_app

from learnpath.extensions import db
from learnpath.models import Course, PaymentTransaction
from learnpath.models.payment import CONFIRMED_STATUSES
from learnpath.errors import ValidationError, NotFoundError, AuthorizationError, GatewayError, SignatureError
from learnpath.helpers.currency import to_decimal, to_minor_units, same_price
from learnpath.services import enrollment as enrollment_service
from learnpath.services.paystack import verify_signature, normalize_metadata

PENDING_STATUSES = ("created", "initialized")


def get_gateway():
    return current_app.extensions["paystack"]


def build_reference(course_id, user_id):
    # microsecond timestamp keeps repeat attempts for the same pair distinct
    return f"course_{course_id}_{user_id}_{time.time_ns() // 1000}"


def initialize_payment(user, course_id, amount, callback_base):
    if not user.email or not user.email.strip():
        raise ValidationError("User email is required for payment")
    if not course_id:
        raise ValidationError("courseId is required")

    course = db.session.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found")

    # Free courses never touch the gateway, whatever amount the client sent
    if course.is_free:
        enrollment, created = enrollment_service.enroll(user.id, course.id)
        return {"free": True, "enrolled": True, "enrollment": enrollment.to_dict()}

    value = to_decimal(amount)
    if value is None or value < 0:
        raise ValidationError("amount must be a non-negative number")
    if not same_price(value, course.price):
        raise ValidationError("Amount does not match the course price")

    currency = current_app.config["PAYSTACK_CURRENCY"]
    reference = build_reference(course.id, user.id)
    payment = PaymentTransaction(
        reference=reference,
        user_id=user.id,
        course_id=course.id,
        amount=to_minor_units(value),
        currency=currency,
        status="created",
    )

    try:
        result = get_gateway().initialize(
            email=user.email,
            amount=value,
            currency=currency,
            reference=reference,
            metadata={
                "courseId": course.id,
                "userId": user.id,
                "courseName": course.title,
            },
            callback_url=f"{callback_base.rstrip('/')}/course/{course.id}?payment=success",
        )
    except GatewayError as e:
        current_app.logger.error(f"Paystack initialize failed for {reference}: {e.message}")
        raise GatewayError(
            "Could not initialize payment. Please try again.",
            payload={"retryable": True}
        ) from e

    payment.status = "initialized"
    payment.access_code = result["access_code"]
    payment.authorization_url = result["authorization_url"]
    db.session.add(payment)
    db.session.commit()

    current_app.logger.info(f"Payment {reference} initialized for user {user.id}, course {course.id}")
    return {
        "authorizationUrl": result["authorization_url"],
        "accessCode": result["access_code"],
        "reference": result["reference"],
    }


def handle_webhook(raw_body, signature):
    secret = current_app.config["PAYSTACK_SECRET_KEY"]
    if not verify_signature(secret, raw_body, signature):
        current_app.logger.warning("Rejected Paystack webhook: invalid signature")
        raise SignatureError("Invalid signature")

    try:
        event = json.loads(raw_body)
    except ValueError:
        raise ValidationError("Invalid webhook payload")
    if not isinstance(event, dict) or not event.get("event"):
        raise ValidationError("Invalid webhook payload")

    if event["event"] != "charge.success":
        current_app.logger.info(f"Ignoring Paystack event {event['event']}")
        return {"message": "Webhook processed"}

    data = event.get("data") or {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid webhook payload")
    reference = data.get("reference")
    metadata = normalize_metadata(data.get("metadata"))
    course_id = metadata.get("courseId")
    user_id = metadata.get("userId")
    if not course_id or not user_id:
        raise ValidationError("Webhook metadata must include courseId and userId")

    payment = _find_payment(reference)
    if payment and _underpaid(payment, data.get("amount")):
        _transition(reference, "failed")
        current_app.logger.error(
            f"Payment {reference} charged {data.get('amount')} but {payment.amount} was expected"
        )
        return {"message": "Webhook processed"}

    enrollment_service.enroll(user_id, course_id)
    _transition(reference, "webhook_confirmed")

    current_app.logger.info(f"Payment successful: User {user_id} enrolled in course {course_id}")
    return {"message": "Webhook processed"}


def verify_payment(user, reference):
    """Confirm a payment from the client side. Returns ``{success, message}``."""
    if not reference:
        raise ValidationError("reference is required")

    try:
        result = get_gateway().verify(reference)
    except GatewayError as e:
        current_app.logger.error(f"Paystack verify failed for {reference}: {e.message}")
        # the charge may still have gone through
        raise GatewayError(
            "We could not confirm your payment right now. If you were charged, "
            f"please contact support with reference {reference}.",
            payload={"reference": reference}
        ) from e

    metadata = result["metadata"]
    if str(metadata.get("userId")) != str(user.id):
        raise AuthorizationError("Payment verification failed - user mismatch")

    payment = _find_payment(reference)
    if payment and payment.user_id != user.id:
        raise AuthorizationError("Payment verification failed - user mismatch")

    if result["status"] != "success":
        if result["status"] == "failed":
            _transition(reference, "failed")
        return {"success": False, "message": "Payment verification failed"}

    if payment and _underpaid(payment, result.get("amount")):
        _transition(reference, "failed")
        current_app.logger.error(
            f"Payment {reference} charged {result.get('amount')} but {payment.amount} was expected"
        )
        return {"success": False, "message": "Payment verification failed"}

    course_id = metadata.get("courseId")
    if not course_id:
        raise ValidationError("Payment metadata is missing courseId")

    enrollment_service.enroll(user.id, course_id)
    _transition(reference, "client_verified")

    return {"success": True, "message": "Payment verified and user enrolled"}


def _find_payment(reference):
    if not reference:
        return None
    return PaymentTransaction.query.filter_by(reference=reference).first()


def _underpaid(payment, amount):
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    return amount < payment.amount


def _transition(reference, status):
    """Move a pending transaction to ``status``. Returns True if this call won."""
    if not reference:
        return False

    now = datetime.utcnow()
    values = {PaymentTransaction.status: status, PaymentTransaction.updated_at: now}
    if status in CONFIRMED_STATUSES:
        values[PaymentTransaction.confirmed_at] = now

    updated = (
        PaymentTransaction.query
        .filter(
            PaymentTransaction.reference == reference,
            PaymentTransaction.status.in_(PENDING_STATUSES)
        )
        .update(values, synchronize_session=False)
    )
    db.session.commit()
    return updated == 1
