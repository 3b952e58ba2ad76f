"""Ordered course/section document model and the service that edits it."""

from .models import Course, Section
from .service import CourseService

__all__ = ["Course", "CourseService", "Section"]
