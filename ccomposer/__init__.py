"""
Core package for the Course Composer authoring tool.

Sub-packages are importable on their own; nothing here wires collaborators
together (see ``ccomposer.session`` for the composition root).
"""

from importlib import metadata


def get_version() -> str:
    """Return the installed project version."""
    try:
        return metadata.version("course-composer")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
