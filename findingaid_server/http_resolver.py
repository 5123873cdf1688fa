"""Resolver backed by a remote finding-aid web service.

``GET <base>/<id>`` is expected to answer with a JSON catalog record such as
``{"id": 1360391327, "repo_name": "sfomuseum-data-maps"}``.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import httpx

from findingaid_shared.constants import REPO_NAME_FIELD
from findingaid_shared.errors import BackendError, ConfigurationError, NotFound

from .logging_config import log
from .resolver import Resolver, ResolverRegistry

DEFAULT_TIMEOUT = 10.0


class HTTPResolver(Resolver):
    """Resolver querying a finding-aid HTTP endpoint."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT, client: httpx.AsyncClient | None = None):
        self.base_url = base_url
        self._base = urlparse(base_url)
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def record_url(self, id: int) -> str:
        """Return the URL of the catalog record for ``id``."""
        path = f"{self._base.path.rstrip('/')}/{id}"
        return urlunparse(self._base._replace(path=path))

    async def get_repo(self, id: int) -> str:
        url = self.record_url(id)
        log.debug("Querying finding aid %s", url)

        try:
            resp = await self._client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise BackendError(f"Failed to query {url}, {exc}") from exc

        if resp.status_code == 404:
            raise NotFound(f"no record for {id}")

        try:
            resp.raise_for_status()
            record = resp.json()
        except (httpx.HTTPStatusError, ValueError) as exc:
            raise BackendError(f"Invalid response from {url}, {exc}") from exc

        repo = record.get(REPO_NAME_FIELD) if isinstance(record, dict) else None
        if not isinstance(repo, str) or not repo:
            raise BackendError(f"record for {id} has no valid '{REPO_NAME_FIELD}' field")

        return repo

    async def close(self) -> None:
        await self._client.aclose()


def new_http_resolver(uri: str) -> Resolver:
    """Return an ``HTTPResolver`` for ``uri``; an optional ``timeout`` query parameter is consumed.

    Raises:
        ConfigurationError: If the URI has no host or an invalid timeout.
    """
    u = urlparse(uri)
    if not u.netloc:
        raise ConfigurationError(f"finding aid URI '{uri}' has no host")

    params = parse_qsl(u.query, keep_blank_values=True)
    timeout = DEFAULT_TIMEOUT
    remaining = []
    for k, v in params:
        if k == "timeout":
            try:
                timeout = float(v)
            except ValueError as exc:
                raise ConfigurationError(f"invalid timeout '{v}'") from exc
        else:
            remaining.append((k, v))

    base_url = urlunparse(u._replace(query=urlencode(remaining)))
    return HTTPResolver(base_url, timeout=timeout)


def register_resolvers(registry: ResolverRegistry) -> None:
    """Register the ``http`` and ``https`` resolver schemes with ``registry``."""
    registry.register("http", new_http_resolver)
    registry.register("https", new_http_resolver)


__all__ = ["HTTPResolver", "new_http_resolver", "register_resolvers"]
