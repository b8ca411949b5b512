import uuid
from learnpath.extensions import db
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

ROLES = ("student", "instructor", "admin")

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(120), unique=True, nullable=True)
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    password_hash = db.Column(db.String(256), nullable=True)
    role = db.Column(db.Enum(*ROLES, name="user_role"), nullable=False, default="student")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    courses = db.relationship("Course", back_populates="instructor")
    enrollments = db.relationship("Enrollment", back_populates="student")
    lesson_progress = db.relationship("LessonProgress", back_populates="student")
    reviews = db.relationship("Review", back_populates="user")
    payments = db.relationship("PaymentTransaction", back_populates="user")

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f"<User {self.email}>"
