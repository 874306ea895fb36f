"""Dependency injection container."""

from typing import Optional

from dishka import AsyncContainer, make_async_container

from commentary.config import Settings
from commentary.util.di import PROVIDERS, ProdConfigProvider, get_provider


def create_container(settings: Optional[Settings] = None) -> AsyncContainer:
    """Build production container (all prod implementations).

    Args:
        settings: Settings to serve (loaded from environment if None)

    Returns:
        Configured DI container with production providers
    """
    provider_instances = [
        ProdConfigProvider(settings)
        if base is ProdConfigProvider
        else get_provider(base, use_mock=False)()
        for base in PROVIDERS
    ]
    return make_async_container(*provider_instances)
