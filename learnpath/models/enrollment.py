import uuid
from learnpath.extensions import db
from datetime import datetime

ENROLLMENT_STATUSES = ("active", "completed", "dropped")

class Enrollment(db.Model):
    __tablename__ = "enrollments"
    # one enrollment per (user, course); concurrent enrolls collide here
    __table_args__ = (
        db.UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    status = db.Column(db.Enum(*ENROLLMENT_STATUSES, name="enrollment_status"), default="active", nullable=False)
    progress = db.Column(db.Integer, default=0, nullable=False)  # percentage
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    student = db.relationship("User", back_populates="enrollments")
    course = db.relationship("Course", back_populates="enrollments")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "courseId": self.course_id,
            "status": self.status,
            "progress": self.progress,
            "enrolledAt": self.enrolled_at.isoformat() if self.enrolled_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }
