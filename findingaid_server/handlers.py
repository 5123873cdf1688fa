from __future__ import annotations

import asyncio
from typing import Optional

from uritemplate import URITemplate

from findingaid_shared.errors import BackendError, FindingAidError
from findingaid_shared.uri import QualifierRules, id2relpath, parse_uri

from . import compose
from .logging_config import log
from .resolver import Resolver


async def resolve_redirect(
    path: str,
    resolver: Resolver,
    template: URITemplate,
    rules: Optional[QualifierRules] = None,
    timeout: Optional[float] = None,
) -> str:
    """Resolve a request path to the absolute URL of its data file.

    The steps run in order (parse, resolve, derive relative path, compose) and
    the first failure ends the request.

    Args:
        path: Request path, e.g. ``/1360391327`` or ``/1360391327-alt-sfomuseum.geojson``.
        resolver: Repository resolver.
        template: Parsed data URI template.
        rules: Optional qualifier rule table.
        timeout: Optional deadline in seconds for the repository lookup.

    Returns:
        str: URL to redirect to.

    Raises:
        FindingAidError: Subclass describing the failed step. Errors are logged
            with the request path and identifier before being raised.
    """
    ctx = {"path": path}

    try:
        id, uri_args = parse_uri(path)
    except FindingAidError as exc:
        log.error("Failed to parse path: %s", exc, extra=ctx)
        raise

    ctx["id"] = id

    try:
        repo = await asyncio.wait_for(resolver.get_repo(id), timeout)
    except asyncio.TimeoutError as exc:
        log.error("Repository lookup timed out after %ss", timeout, extra=ctx)
        raise BackendError(f"lookup for {id} timed out") from exc
    except FindingAidError as exc:
        log.error("Failed to derive repository (%s): %s", type(exc).__name__, exc, extra=ctx)
        raise

    ctx["repo"] = repo

    try:
        rel_path = id2relpath(id, uri_args, rules)
    except FindingAidError as exc:
        log.error("Failed to derive relative path: %s", exc, extra=ctx)
        raise

    try:
        data_uri = compose.compose(template, repo, rel_path)
    except FindingAidError as exc:
        log.error("Failed to derive final data URI: %s", exc, extra=ctx)
        raise

    log.info("redirect %s -> %s", path, data_uri, extra={**ctx, "url": data_uri})
    return data_uri
