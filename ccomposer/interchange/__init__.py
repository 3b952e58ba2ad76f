"""MECS interchange: versioned, namespaced course documents."""

from .mecs import COURSE_TYPE, CUSTOM_PREFIX, MECS_VERSION, MECSAdapter, detect_provider

__all__ = ["COURSE_TYPE", "CUSTOM_PREFIX", "MECSAdapter", "MECS_VERSION", "detect_provider"]
