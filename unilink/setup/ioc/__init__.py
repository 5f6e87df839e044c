from unilink.setup.ioc.container import (
    HandlersProvider,
    LocalNotifierProvider,
    RealtimeProvider,
    RedisRelayProvider,
    create_container,
    default_providers,
)

__all__ = [
    "HandlersProvider",
    "LocalNotifierProvider",
    "RealtimeProvider",
    "RedisRelayProvider",
    "create_container",
    "default_providers",
]
