"""HTTP gateway redirecting identifier requests to their raw data files.

Every path other than ``/favicon.ico`` is treated as an identifier request.
Successful lookups answer ``303 See Other`` with a ``Location`` header
pointing at the data file; failures answer with a bare status phrase.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from uritemplate import URITemplate

from findingaid_shared.errors import FindingAidError
from findingaid_shared.uri import QualifierRules

from . import handlers
from .logging_config import log
from .resolver import Resolver


def _error_response(status_code: int) -> PlainTextResponse:
    return PlainTextResponse(HTTPStatus(status_code).phrase, status_code=status_code)


def create_app(
    resolver: Resolver,
    template: URITemplate,
    lookup_timeout: Optional[float] = None,
    rules: Optional[QualifierRules] = None,
) -> FastAPI:
    """Create the redirect application.

    Args:
        resolver: Repository resolver shared by all requests.
        template: Parsed data URI template.
        lookup_timeout: Optional deadline in seconds for each repository lookup.
        rules: Optional qualifier rule table.

    Returns:
        FastAPI: Configured application.
    """
    app = FastAPI(title="Who's On First finding aid redirect")

    @app.on_event("startup")
    async def on_startup():
        log.info("Redirect gateway started", extra={"resolver": type(resolver).__name__})

    @app.on_event("shutdown")
    async def on_shutdown():
        await resolver.close()
        log.info("Redirect gateway stopped")

    @app.api_route("/favicon.ico", methods=["GET", "HEAD"])
    async def favicon():
        return Response(status_code=204)

    @app.api_route("/{path:path}", methods=["GET", "HEAD"])
    async def redirect(path: str, request: Request):
        """Redirect an identifier request to the data file it names."""
        req_path = request.url.path
        try:
            data_uri = await handlers.resolve_redirect(
                req_path, resolver, template, rules=rules, timeout=lookup_timeout
            )
        except FindingAidError as exc:
            return _error_response(exc.status_code)
        except Exception:  # noqa: BLE001
            log.exception("Unhandled error while resolving %s", req_path, extra={"path": req_path})
            return _error_response(500)

        return RedirectResponse(data_uri, status_code=303)

    return app


__all__ = ["create_app"]
