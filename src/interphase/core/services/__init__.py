"""
Service layer for interphase.

Services compose core operations into the API surface the CLI calls.
They return typed results and never print; presentation is the caller's job.
"""

from interphase.core.services.lifecycle import LifecycleService

__all__ = [
    "LifecycleService",
]
