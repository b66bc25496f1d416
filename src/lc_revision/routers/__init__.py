"""Router package exports."""

from . import health, problems, revisions

__all__ = [
    "health",
    "problems",
    "revisions",
]
