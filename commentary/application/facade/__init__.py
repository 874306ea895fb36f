"""Facades composing comment behavior into host entities."""

from .commenter import Commenter
from .factory import CommentFacades
from .subject import CommentableSubject

__all__ = [
    "CommentFacades",
    "CommentableSubject",
    "Commenter",
]
