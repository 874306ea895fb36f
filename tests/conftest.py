"""Test configuration and fixtures."""

from uuid import uuid4

import pytest

from commentary.domain.value import SubjectRef, UserId


@pytest.fixture
def subject() -> SubjectRef:
    """A commentable post owned by the host application."""
    return SubjectRef(type="post", id=str(uuid4()))


@pytest.fixture
def user_id() -> UserId:
    return UserId(uuid4())


@pytest.fixture
def other_user_id() -> UserId:
    return UserId(uuid4())
