"""Resolver interface and the scheme-keyed registry of resolver factories.

A resolver maps a record identifier to the name of the repository holding it.
Backends are chosen by the scheme of a configuration URI, e.g.
``awsdynamodb://findingaid?region=us-west-2&partition_key=id`` or
``https://data.whosonfirst.org/findingaid``.
"""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List
from urllib.parse import urlparse

from findingaid_shared.errors import DuplicateScheme, UnknownScheme

from .logging_config import log

_RE_SCHEME = re.compile(r"[a-z][a-z0-9+.\-]*")


class Resolver(ABC):
    """Maps record identifiers to repository names."""

    @abstractmethod
    async def get_repo(self, id: int) -> str:
        """Return the name of the repository containing ``id``.

        Raises:
            NotFound: If no record exists for ``id``.
            BackendError: On transport or storage failure, or a malformed record.
        """

    async def close(self) -> None:
        """Release any backend connection held by the resolver."""
        return None


ResolverFactory = Callable[[str], Resolver]


class ResolverRegistry:
    """Registry of resolver factories keyed by URI scheme."""

    def __init__(self):
        self._factories: Dict[str, ResolverFactory] = {}
        self._lock = threading.Lock()

    def register(self, scheme: str, factory: ResolverFactory) -> None:
        """Register a resolver factory for a URI scheme.

        Args:
            scheme: URI scheme (e.g. ``mem`` or ``awsdynamodb``).
            factory: Callable building a resolver from the full configuration URI.

        Raises:
            ValueError: If ``scheme`` is not a valid URI scheme name.
            DuplicateScheme: If ``scheme`` is already registered.
        """
        key = (scheme or "").lower()
        if not _RE_SCHEME.fullmatch(key):
            raise ValueError(f"Invalid scheme: {scheme!r}")

        with self._lock:
            if key in self._factories:
                raise DuplicateScheme(f"resolver scheme '{key}' is already registered")
            self._factories[key] = factory

        log.debug("Registered resolver scheme %s", key)

    def new_resolver(self, uri: str) -> Resolver:
        """Build a resolver for a configuration URI.

        The factory receives the full URI so backend-specific query parameters
        are preserved.

        Args:
            uri: Resolver configuration URI.

        Returns:
            Resolver: Backend resolver instance.

        Raises:
            UnknownScheme: If no factory is registered for the URI's scheme.
        """
        scheme = urlparse(uri).scheme.lower()

        with self._lock:
            factory = self._factories.get(scheme)

        if factory is None:
            raise UnknownScheme(f"no resolver registered for scheme '{scheme}'")

        return factory(uri)

    def schemes(self) -> List[str]:
        with self._lock:
            return sorted(self._factories)


def default_registry() -> ResolverRegistry:
    """Return a registry with every resolver backend shipped in this package."""
    from . import docstore, http_resolver

    registry = ResolverRegistry()
    docstore.register_resolvers(registry)
    http_resolver.register_resolvers(registry)
    return registry


__all__ = ["Resolver", "ResolverFactory", "ResolverRegistry", "default_registry"]
