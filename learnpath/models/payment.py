import uuid
from learnpath.extensions import db
from datetime import datetime

# created -> initialized -> webhook_confirmed | client_verified | failed
PAYMENT_STATUSES = ("created", "initialized", "webhook_confirmed", "client_verified", "failed")
CONFIRMED_STATUSES = ("webhook_confirmed", "client_verified")

class PaymentTransaction(db.Model):
    __tablename__ = "payment_transactions"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    reference = db.Column(db.String(200), unique=True, nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    amount = db.Column(db.Integer, nullable=False)  # minor units
    currency = db.Column(db.String(3), nullable=False)
    provider = db.Column(db.String(20), nullable=False, default="paystack")
    status = db.Column(db.Enum(*PAYMENT_STATUSES, name="payment_status"), nullable=False, default="created")
    access_code = db.Column(db.String(120))
    authorization_url = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    confirmed_at = db.Column(db.DateTime)

    user = db.relationship("User", back_populates="payments")
    course = db.relationship("Course", backref="payments")

    @property
    def is_confirmed(self):
        return self.status in CONFIRMED_STATUSES

    def __repr__(self):
        return f"<PaymentTransaction {self.reference} {self.status}>"
