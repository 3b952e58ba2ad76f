"""Runtime context holding the collaborators of one authoring session."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ccomposer.content.registry import ContentKindRegistry
from ccomposer.core.config import ComposerConfig
from ccomposer.core.errors import NoActiveDocument
from ccomposer.core.provenance import ProvenanceLogger
from ccomposer.document.models import Course
from ccomposer.document.service import CourseService
from ccomposer.interchange.mecs import MECSAdapter
from ccomposer.storage.service import StorageService

LOGGER = logging.getLogger(__name__)


class ComposerContext(BaseModel):
    """Aggregated session objects; built once by ``bootstrap`` and passed explicitly."""

    config: ComposerConfig
    registry: ContentKindRegistry
    adapter: MECSAdapter
    course_service: CourseService
    storage: StorageService
    journal: Optional[ProvenanceLogger] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def resume(self) -> Course:
        """Make a course active: the remembered one, else the newest saved, else a new one."""
        data = self.storage.active_course_data()
        if data is None:
            data = self.storage.latest_course_data()
        if data is None:
            LOGGER.info("No saved course found; starting a new one")
            return self.course_service.create_course({"title": self.config.defaults.new_course_title})
        return self.course_service.load_course(data)

    def persist(self) -> str:
        """Save the active course and remember it for the next session."""
        course = self.course_service.get_current_course()
        if course is None:
            raise NoActiveDocument("No course to save")
        return self.storage.remember_active(course)
