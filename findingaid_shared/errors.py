"""Error taxonomy shared by the identifier parser, resolvers and redirect handler.

Each error carries the HTTP status the gateway answers with when it escapes a request.
"""

from __future__ import annotations


class FindingAidError(Exception):
    """Base class for all finding-aid errors."""

    status_code = 500


class MalformedIdentifier(FindingAidError):
    """The request path does not carry a valid leading numeric identifier."""

    status_code = 400


class UnsupportedQualifier(FindingAidError):
    """A qualifier argument has no matching path-derivation rule."""

    status_code = 400


class NotFound(FindingAidError):
    """No catalog record exists for the identifier."""

    status_code = 404


class BackendError(FindingAidError):
    """Transport or storage failure, or a malformed catalog record."""


class ConfigurationError(FindingAidError):
    """A resolver backend could not be constructed from its URI."""


class TemplateExpansionError(FindingAidError):
    """The data URI template could not be parsed, expanded or joined."""


class DuplicateScheme(FindingAidError):
    """A resolver scheme was registered twice."""


class UnknownScheme(FindingAidError):
    """No resolver factory is registered for a URI scheme."""


__all__ = [
    "FindingAidError",
    "MalformedIdentifier",
    "UnsupportedQualifier",
    "NotFound",
    "BackendError",
    "ConfigurationError",
    "TemplateExpansionError",
    "DuplicateScheme",
    "UnknownScheme",
]
