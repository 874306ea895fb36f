"""Domain value objects for comments.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules and business logic.
"""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import Field, field_validator

from commentary.domain.value.common import ValueObject
from commentary.domain.value.identifiers import UserId


class SubjectRef(ValueObject):
    """Reference to a commentable entity owned by the host application.

    The subject is never dereferenced, only stored and filtered on.
    Examples: SubjectRef(type="post", id="42"), SubjectRef(type="video", id=str(uuid))
    """

    type: str = Field(min_length=1, max_length=255)
    id: str = Field(min_length=1, max_length=255)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        """Accept ints and UUIDs as subject ids."""
        if isinstance(v, (str, bytes)):
            return v
        return str(v)

    def __str__(self) -> str:
        return f"{self.type}:{self.id}"


class CounterField(str, Enum):
    """Denormalized counter columns on a comment."""

    LIKES = "likes_count"
    REPLIES = "replies_count"


class SortDirection(str, Enum):
    """Sort direction for ordered queries."""

    ASC = "asc"
    DESC = "desc"


class CommentScope(ValueObject):
    """Composable filter over comments.

    Each method returns a narrowed copy, so scopes chain:

        CommentScope().of(subject).parents()
        CommentScope().commented_by(user_id).replies_only()
    """

    subject: SubjectRef | None = None
    author_id: UserId | None = None
    top_level: bool | None = None  # None = both, True = parents, False = replies

    def parents(self) -> "CommentScope":
        """Restrict to top-level comments (no parent)."""
        return self.model_copy(update={"top_level": True})

    def replies_only(self) -> "CommentScope":
        """Restrict to replies (has a parent)."""
        return self.model_copy(update={"top_level": False})

    def of(self, subject: SubjectRef) -> "CommentScope":
        """Restrict to comments on a subject."""
        return self.model_copy(update={"subject": subject})

    def commented_by(self, user_id: UserId) -> "CommentScope":
        """Restrict to comments written by a user."""
        return self.model_copy(update={"author_id": user_id})


T = TypeVar("T")


class Page(ValueObject, Generic[T]):
    """A paginated batch of results."""

    items: list[T]
    total: int = Field(ge=0)
    limit: int = Field(ge=0)
    offset: int = Field(default=0, ge=0)

    @property
    def has_more(self) -> bool:
        """Whether more items exist past this page."""
        return self.offset + len(self.items) < self.total
