"""
PORTS - Interfaces that infrastructure implements

A "port" is an abstract interface that defines WHAT the domain needs,
without specifying HOW it's done.

Subfolders:
- repositories/  → Data persistence interfaces
- (root files)   → Other external service interfaces (notifier.py)
"""

from unilink.domain.ports.notifier import Notifier

__all__ = ["Notifier"]
