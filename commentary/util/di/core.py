"""Core DI providers (non-mockable)."""

from typing import Optional

from dishka import Scope, provide

from commentary.config import CommentSettings, Settings
from commentary.domain.event import EventBus
from commentary.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file unless
    explicit settings are passed in.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self._settings = settings

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings."""
        return self._settings or Settings()

    @provide(scope=Scope.APP)
    def provide_comment_settings(self, settings: Settings) -> CommentSettings:
        """Provide comment threading settings."""
        return settings.comments

    @provide(scope=Scope.APP)
    def provide_event_bus(self) -> EventBus:
        """Provide the process-wide event bus."""
        return EventBus()
