"""Shared exports for the finding-aid server and its tests."""

from .constants import (  # noqa: F401
    DATA_EXTENSION,
    DEFAULT_KEY_FIELD,
    QUALIFIER_ALT,
    REPO_NAME_FIELD,
    TEMPLATE_REPO_VARIABLE,
)
from .errors import (  # noqa: F401
    BackendError,
    ConfigurationError,
    DuplicateScheme,
    FindingAidError,
    MalformedIdentifier,
    NotFound,
    TemplateExpansionError,
    UnknownScheme,
    UnsupportedQualifier,
)
from .uri import DEFAULT_RULES, QualifierRules, URIArgs, id2relpath, parse_uri  # noqa: F401

__all__ = [
    "DATA_EXTENSION",
    "DEFAULT_KEY_FIELD",
    "QUALIFIER_ALT",
    "REPO_NAME_FIELD",
    "TEMPLATE_REPO_VARIABLE",
    "FindingAidError",
    "MalformedIdentifier",
    "UnsupportedQualifier",
    "NotFound",
    "BackendError",
    "ConfigurationError",
    "TemplateExpansionError",
    "DuplicateScheme",
    "UnknownScheme",
    "URIArgs",
    "QualifierRules",
    "DEFAULT_RULES",
    "parse_uri",
    "id2relpath",
]
