"""
Infrastructure Layer - Technical implementations of domain ports.

This layer contains:
- persistence/: Database implementations (Prisma repositories)
- realtime/: Notification bus, WebSocket channels, Redis relay

Submodules are imported explicitly; importing this package pulls in neither
Prisma nor Redis.
"""
