import uuid
from learnpath.extensions import db
from datetime import datetime

class Lesson(db.Model):
    __tablename__ = "lessons"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=True)
    video_url = db.Column(db.String(255), nullable=True)
    duration = db.Column(db.Integer, nullable=True)  # minutes
    order = db.Column(db.Integer, nullable=False)
    is_free = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # each Lesson belongs to a Module (not Course directly)
    module_id = db.Column(db.String(36), db.ForeignKey("modules.id"), nullable=False)

    module = db.relationship("Module", back_populates="lessons")
    progress = db.relationship("LessonProgress", back_populates="lesson")
