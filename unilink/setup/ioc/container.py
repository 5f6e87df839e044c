"""
Dishka DI Container Setup.

Guidelines:
- Registers all dependencies (bus, notifier, repositories, handlers)
- Maps abstract interfaces to concrete implementations
- Manages lifecycle (singleton, request-scoped, etc.)

Dishka concepts:
- Provider: Class that defines how to create dependencies
- @provide: Decorator to mark factory methods
- Scope: Lifecycle of dependency (APP = singleton, REQUEST = per-request)
- Generator providers: code after ``yield`` runs when the container closes

Providers are split so tests (and other deployments) can swap pieces:
- RealtimeProvider       NotificationBus (APP), closed on shutdown
- LocalNotifierProvider  Notifier → the in-process bus
- RedisRelayProvider     Notifier → RedisNotificationRelay (multi-process)
- PrismaProvider         Prisma client + repositories (prisma_provider.py)
- HandlersProvider       command/query handlers (REQUEST)

Flow:
  Container → provides → SendMessageHandler
                  ├── MessageRepository (PrismaMessageRepository)
                  └── Notifier (NotificationBus or RedisNotificationRelay)
"""

from typing import AsyncIterable, Optional

from dishka import AsyncContainer, Provider, Scope, make_async_container, provide
from redis.asyncio import Redis

from unilink.application.commands.messages import (
    MarkMessageReadHandler,
    SendMessageHandler,
)
from unilink.application.queries.messages import (
    GetConversationHandler,
    ListConversationsHandler,
)
from unilink.application.queries.users import GetUserHandler
from unilink.config.settings import Config
from unilink.domain.ports.notifier import Notifier
from unilink.domain.ports.repositories import MessageRepository, UserRepository
from unilink.infrastructure.realtime.notification_bus import NotificationBus
from unilink.infrastructure.realtime.redis_client import (
    close_redis_client,
    create_redis_client,
)
from unilink.infrastructure.realtime.redis_relay import RedisNotificationRelay
from unilink.presentation.dependencies.auth import verify_identity_token


class RealtimeProvider(Provider):
    """
    Provides the process-wide NotificationBus.

    Pass ``bus`` to register a pre-built instance (tests keep a reference to
    inspect channels); it is still closed with the container.
    """

    def __init__(self, bus: Optional[NotificationBus] = None):
        super().__init__()
        self._bus = bus

    @provide(scope=Scope.APP)
    async def get_notification_bus(self) -> AsyncIterable[NotificationBus]:
        bus = self._bus or NotificationBus(
            auth_timeout=Config.REALTIME_AUTH_TIMEOUT_SECONDS,
            max_unauthenticated=Config.REALTIME_MAX_UNAUTHENTICATED,
            send_buffer_size=Config.REALTIME_SEND_BUFFER,
            identity_verifier=(
                verify_identity_token if Config.REALTIME_REQUIRE_TOKEN else None
            ),
        )
        yield bus
        await bus.close()


class LocalNotifierProvider(Provider):
    """Single process: the workflow broadcasts straight into the local bus."""

    @provide(scope=Scope.APP)
    def get_notifier(self, bus: NotificationBus) -> Notifier:
        return bus


class RedisRelayProvider(Provider):
    """Several processes: broadcasts go through Redis pub/sub."""

    @provide(scope=Scope.APP)
    async def get_redis(self) -> AsyncIterable[Redis]:
        client = await create_redis_client(Config.REDIS_URL)
        yield client
        await close_redis_client(client)

    @provide(scope=Scope.APP)
    async def get_relay(
        self, redis: Redis, bus: NotificationBus
    ) -> AsyncIterable[RedisNotificationRelay]:
        relay = RedisNotificationRelay(
            redis, bus, retry_seconds=Config.REALTIME_RELAY_RETRY_SECONDS
        )
        await relay.start()
        yield relay
        await relay.stop()

    @provide(scope=Scope.APP)
    def get_notifier(self, relay: RedisNotificationRelay) -> Notifier:
        return relay


class HandlersProvider(Provider):
    """
    Application handlers.

    - Parameters ask for abstract ports (MessageRepository, Notifier)
    - Dishka resolves them from whichever providers are registered
    - Scope.REQUEST = new instance per HTTP request
    """

    @provide(scope=Scope.REQUEST)
    def get_send_message_handler(
        self, message_repository: MessageRepository, notifier: Notifier
    ) -> SendMessageHandler:
        return SendMessageHandler(
            message_repository=message_repository,
            notifier=notifier,
            max_length=Config.MESSAGE_MAX_LENGTH,
        )

    @provide(scope=Scope.REQUEST)
    def get_mark_message_read_handler(
        self, message_repository: MessageRepository
    ) -> MarkMessageReadHandler:
        return MarkMessageReadHandler(message_repository)

    @provide(scope=Scope.REQUEST)
    def get_conversation_handler(
        self, message_repository: MessageRepository
    ) -> GetConversationHandler:
        return GetConversationHandler(message_repository)

    @provide(scope=Scope.REQUEST)
    def get_list_conversations_handler(
        self, message_repository: MessageRepository
    ) -> ListConversationsHandler:
        return ListConversationsHandler(message_repository)

    @provide(scope=Scope.REQUEST)
    def get_user_handler(self, user_repository: UserRepository) -> GetUserHandler:
        return GetUserHandler(user_repository)


def default_providers() -> list[Provider]:
    """Production wiring, chosen by Config.REALTIME_RELAY."""
    # Imported here: needs a generated Prisma client
    from unilink.setup.ioc.prisma_provider import PrismaProvider

    notifier_provider: Provider = (
        RedisRelayProvider()
        if Config.REALTIME_RELAY == "redis"
        else LocalNotifierProvider()
    )
    return [RealtimeProvider(), notifier_provider, PrismaProvider(), HandlersProvider()]


def create_container(*providers: Provider) -> AsyncContainer:
    """
    Create and configure the DI container.

    - With no providers, uses the production wiring
    - Call this ONCE per application instance
    """
    return make_async_container(*(providers or default_providers()))
