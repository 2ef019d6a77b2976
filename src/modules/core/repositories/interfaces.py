"""Generic repository interfaces (Dependency Inversion Principle).

Provides ``IReadRepository[T]`` for read-only aggregates (the catalog)
and ``IRepository[T]`` for aggregates the services also write (orders).
Service-layer code depends on these abstractions, never on Django ORM
directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, Protocol, TypeVar

from django.db import models

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Queryable(Protocol[T_co]):
    def filter(self, **kwargs: Any) -> models.QuerySet: ...

    def count(self) -> int: ...


class IReadRepository(ABC, Generic[T]):
    """Read-only repository contract.

    Type parameter ``T`` represents the domain entity managed by the
    repository (e.g. ``Product``, ``Category``).
    """

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Queryable[T]:
        """List entities in stored order with optional filters."""


class IRepository(IReadRepository[T]):
    """Read/write repository contract."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""

    @abstractmethod
    def delete(self, id: Any) -> bool:
        """Remove an entity by ID."""
