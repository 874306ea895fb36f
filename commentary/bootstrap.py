"""Wiring entrypoint for host applications."""

from typing import Optional

import logfire
from dishka import AsyncContainer

from commentary.config import Settings
from commentary.util.di.container import create_container
from commentary.util.logging import setup_logging
from commentary.util.observability import configure_logfire


def bootstrap(settings: Optional[Settings] = None) -> AsyncContainer:
    """Configure logging and observability, then build the DI container.

    Usage:
        container = bootstrap()
        async with container() as request:
            facades = await request.get(CommentFacades)
            await facades.subject(post_ref).comment(user_id, "First!")
        await container.close()

    Args:
        settings: Settings to configure from (loaded from environment if None)

    Returns:
        Production DI container
    """
    settings = settings or Settings()

    setup_logging(settings)
    configure_logfire(settings)

    container = create_container(settings)
    logfire.info(
        "Commentary container ready",
        environment=settings.environment,
        max_nesting_depth=settings.comments.max_nesting_depth,
    )
    return container
