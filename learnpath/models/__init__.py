from .user import User
from .course import Course, Module
from .lesson import Lesson
from .enrollment import Enrollment
from .progress import LessonProgress
from .review import Review
from .payment import PaymentTransaction
