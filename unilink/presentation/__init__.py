"""
Presentation Layer - API endpoints and request/response handling.

This layer contains:
- api/: FastAPI routers (REST + the notification WebSocket)
- dependencies/: auth dependency injected into routes
"""
