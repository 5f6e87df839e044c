"""
DOMAIN LAYER - Entities, value objects, events and ports.

Rules:
- No framework imports (FastAPI, Prisma, Redis)
- Everything else depends on this layer, never the other way around
"""
