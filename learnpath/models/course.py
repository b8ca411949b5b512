import uuid
from decimal import Decimal
from learnpath.extensions import db
from datetime import datetime

COURSE_STATUSES = ("draft", "published", "archived")

class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    short_description = db.Column(db.String(255))
    instructor_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    category = db.Column(db.String(100))
    price = db.Column(db.Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    thumbnail_url = db.Column(db.String(255))
    status = db.Column(db.Enum(*COURSE_STATUSES, name="course_status"), default="draft", nullable=False)
    duration = db.Column(db.Integer)  # hours
    level = db.Column(db.String(50))
    rating = db.Column(db.Numeric(3, 2), default=Decimal("0.00"), nullable=False)
    students_count = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    instructor = db.relationship("User", back_populates="courses")
    modules = db.relationship(
        "Module",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Module.order"
    )
    enrollments = db.relationship("Enrollment", back_populates="course")
    reviews = db.relationship("Review", back_populates="course")

    @property
    def is_free(self):
        return (self.price or Decimal("0")) == 0

    @property
    def total_lessons(self):
        return sum(len(module.lessons) for module in self.modules)


class Module(db.Model):
    __tablename__ = "modules"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    order = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    course = db.relationship("Course", back_populates="modules")
    lessons = db.relationship(
        "Lesson",
        back_populates="module",
        cascade="all, delete-orphan",
        order_by="Lesson.order"
    )
