"""Comment query and projection service."""

from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional, Sequence, Union

import logfire

from commentary.domain.model import Comment, CommentInteraction, SubjectEngagement
from commentary.domain.repository import CommentRepository
from commentary.domain.value import (
    CommentScope,
    Page,
    SortDirection,
    SubjectRef,
    UserId,
)

from .base import Service

Resolver = Callable[[Any], Optional[Comment]]


class CommentQueryService(Service):
    """Read-side queries over comments: scopes, counts and annotations."""

    def __init__(self, comment_repository: CommentRepository) -> None:
        """Initialize query service.

        Args:
            comment_repository: Comment repository
        """
        self.comment_repository = comment_repository

    async def find(
        self, scope: CommentScope, limit: int = 30, offset: int = 0
    ) -> Page[Comment]:
        """Find a page of comments matching a scope, newest first.

        Args:
            scope: Filter to apply
            limit: Page size
            offset: Number of comments to skip

        Returns:
            Page of comments with the total match count
        """
        with logfire.span(
            "query_service.find",
            scope=scope.model_dump(mode="json"),
            limit=limit,
            offset=offset,
        ):
            items = await self.comment_repository.find_by_scope(
                scope, limit=limit, offset=offset
            )
            total = await self.comment_repository.count_by_scope(scope)
            return Page(items=items, total=total, limit=limit, offset=offset)

    async def count(self, scope: CommentScope) -> int:
        """Count comments matching a scope."""
        return await self.comment_repository.count_by_scope(scope)

    async def count_top_level(self, subject: SubjectRef) -> int:
        """Count top-level comments on a subject."""
        return await self.count(CommentScope().of(subject).parents())

    async def count_all(self, subject: SubjectRef) -> int:
        """Count all comments on a subject, replies included."""
        return await self.count(CommentScope().of(subject))

    async def has_any(self, subject: SubjectRef) -> bool:
        """Check whether a subject has any top-level comment."""
        found = await self.comment_repository.find_by_scope(
            CommentScope().of(subject).parents(), limit=1
        )
        return bool(found)

    async def order_by_subject_engagement(
        self,
        subjects: Sequence[SubjectRef],
        direction: SortDirection = SortDirection.DESC,
    ) -> list[SubjectEngagement]:
        """Annotate subjects with their total comment count and sort by it.

        Subjects with equal counts keep their input order.

        Args:
            subjects: Subjects to rank (duplicates are collapsed)
            direction: Sort direction

        Returns:
            Subjects with their comment counts, sorted
        """
        with logfire.span(
            "query_service.order_by_subject_engagement",
            subject_count=len(subjects),
            direction=direction.value,
        ):
            unique = list(dict.fromkeys(subjects))
            counts = await self.comment_repository.count_by_subjects(unique)

            ranked = [
                SubjectEngagement(
                    subject=subject, comments_count=counts.get(subject, 0)
                )
                for subject in unique
            ]
            ranked.sort(
                key=lambda e: e.comments_count,
                reverse=direction == SortDirection.DESC,
            )
            return ranked

    async def attach_interaction_status(
        self,
        comments: Union[Comment, Page, Iterable[Any], Any],
        user_id: UserId,
        resolver: Optional[Resolver] = None,
    ) -> Union[CommentInteraction, list[CommentInteraction], None]:
        """Annotate comments with whether a user commented on their subject.

        Accepts a single comment, any iterable of comments or a Page. When a
        resolver is given, it maps each item to the comment to annotate;
        items resolving to None are skipped. Uses one query per batch.

        Args:
            comments: Comment, iterable or page to annotate
            user_id: The acting user
            resolver: Optional mapping from batch item to comment

        Returns:
            A single annotation for single input, otherwise a list

        Raises:
            TypeError: If comments is not a supported batch type
        """
        items, single = _normalize_batch(comments, resolver)
        resolve = resolver or (lambda item: item)

        targets: list[Comment] = []
        for item in items:
            comment = resolve(item)
            if isinstance(comment, Comment):
                targets.append(comment)

        subjects = list(dict.fromkeys(comment.subject for comment in targets))
        commented_at = (
            await self.comment_repository.latest_comment_times(user_id, subjects)
            if subjects
            else {}
        )

        annotated = [
            CommentInteraction(
                comment=comment,
                has_commented=comment.subject in commented_at,
                commented_at=commented_at.get(comment.subject),
            )
            for comment in targets
        ]
        logfire.debug(
            "Interaction status attached",
            user_id=str(user_id),
            comments=len(annotated),
            subjects=len(subjects),
        )

        if single:
            return annotated[0] if annotated else None
        return annotated


def _normalize_batch(
    comments: Any, resolver: Optional[Resolver]
) -> tuple[list[Any], bool]:
    """Turn a single item, iterable or page into a list.

    Returns:
        The items and whether the input was a single item
    """
    if isinstance(comments, Page):
        return list(comments.items), False
    if isinstance(comments, Comment):
        return [comments], True
    if isinstance(comments, (str, bytes, Mapping)):
        raise TypeError(f"Invalid comments type: {type(comments).__name__}")
    if isinstance(comments, Iterable):
        return list(comments), False
    if resolver is not None:
        return [comments], True
    raise TypeError(f"Invalid comments type: {type(comments).__name__}")
