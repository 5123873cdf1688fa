"""Identifier parsing and relative-path derivation for finding-aid records.

Records live in a repository's ``data`` tree under a path derived from the
decimal digits of their identifier, split into chunks of three:
``1360391327`` is stored at ``136/039/132/7/1360391327.geojson``. Qualifier
arguments (e.g. an alternate geometry) select a different file in the same
directory; how a qualifier changes the filename is decided by a rule table so
the suffix syntax can be swapped without touching the parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional, Tuple

from .constants import DATA_EXTENSION, PATH_CHUNK_SIZE, QUALIFIER_ALT
from .errors import MalformedIdentifier, UnsupportedQualifier

_RE_FILENAME = re.compile(
    r"(?P<id>[0-9]+)(?:-(?P<key>[a-z]+)-(?P<value>[A-Za-z0-9_\-]+))?(?:" + re.escape(DATA_EXTENSION) + r")?"
)
_RE_ALT_PART = re.compile(r"[A-Za-z0-9_]+")

QualifierRule = Callable[[str], str]


@dataclass(frozen=True)
class URIArgs:
    """Qualifier arguments parsed alongside an identifier.

    ``qualifiers`` is an ordered tuple of ``(key, value)`` pairs; empty means
    the primary data file.
    """

    qualifiers: Tuple[Tuple[str, str], ...] = ()

    @property
    def is_alternate(self) -> bool:
        return self.get(QUALIFIER_ALT) is not None

    def get(self, key: str) -> Optional[str]:
        for k, v in self.qualifiers:
            if k == key:
                return v
        return None


def alt_geometry_rule(value: str) -> str:
    """Return the filename suffix for an alternate geometry label.

    Args:
        value: Label of the form ``source[-function[-extra...]]``.

    Returns:
        str: Suffix such as ``-alt-sfomuseum``.

    Raises:
        ValueError: If any part of the label is empty or has invalid characters.
    """
    parts = value.split("-")
    if not all(_RE_ALT_PART.fullmatch(p) for p in parts):
        raise ValueError(f"invalid alternate geometry label '{value}'")
    return f"-{QUALIFIER_ALT}-{value}"


class QualifierRules:
    """Table mapping qualifier keys to filename-suffix rules."""

    def __init__(self, rules: Optional[Dict[str, QualifierRule]] = None):
        self._rules: Dict[str, QualifierRule] = dict(rules or {})

    def register(self, key: str, rule: QualifierRule) -> None:
        self._rules[key] = rule

    def __contains__(self, key: object) -> bool:
        return key in self._rules

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def suffix(self, key: str, value: str) -> str:
        """Apply the rule for ``key`` to ``value``.

        Raises:
            UnsupportedQualifier: If no rule exists for ``key`` or the rule rejects ``value``.
        """
        rule = self._rules.get(key)
        if rule is None:
            raise UnsupportedQualifier(f"unsupported qualifier '{key}'")
        try:
            return rule(value)
        except ValueError as exc:
            raise UnsupportedQualifier(str(exc)) from exc


DEFAULT_RULES = QualifierRules({QUALIFIER_ALT: alt_geometry_rule})


def parse_uri(path: str) -> Tuple[int, URIArgs]:
    """Parse a request path into an identifier and its qualifier arguments.

    Only the last non-empty path segment is inspected, so ``/1360391327``,
    ``/1360391327.geojson`` and ``/136/039/132/7/1360391327-alt-sfomuseum.geojson``
    are all accepted.

    Args:
        path: Request path.

    Returns:
        tuple[int, URIArgs]: Identifier and qualifier arguments.

    Raises:
        MalformedIdentifier: If the path does not end in a valid identifier.
    """
    segments = [s for s in (path or "").split("/") if s]
    if not segments:
        raise MalformedIdentifier("empty path")

    m = _RE_FILENAME.fullmatch(segments[-1])
    if m is None:
        raise MalformedIdentifier(f"invalid identifier in path '{path}'")

    qualifiers: Tuple[Tuple[str, str], ...] = ()
    if m.group("key"):
        qualifiers = ((m.group("key"), m.group("value")),)

    return int(m.group("id")), URIArgs(qualifiers)


def id2path(id: int) -> str:
    """Return the directory path for an identifier, e.g. ``136/039/132/7``."""
    if id < 0:
        raise MalformedIdentifier(f"negative identifier {id}")
    digits = str(id)
    chunks = [digits[i : i + PATH_CHUNK_SIZE] for i in range(0, len(digits), PATH_CHUNK_SIZE)]
    return "/".join(chunks)


def id2fname(id: int, args: Optional[URIArgs] = None, rules: Optional[QualifierRules] = None) -> str:
    """Return the data filename for an identifier and its qualifiers.

    Raises:
        UnsupportedQualifier: If a qualifier has no rule in ``rules``.
    """
    rules = rules if rules is not None else DEFAULT_RULES
    suffix = ""
    for key, value in (args.qualifiers if args else ()):
        suffix += rules.suffix(key, value)
    return f"{id}{suffix}{DATA_EXTENSION}"


def id2relpath(id: int, args: Optional[URIArgs] = None, rules: Optional[QualifierRules] = None) -> str:
    """Return the path of an identifier's data file relative to a repository ``data`` root.

    Args:
        id: Record identifier.
        args: Optional qualifier arguments.
        rules: Optional rule table; defaults to ``DEFAULT_RULES``.

    Returns:
        str: Relative path such as ``136/039/132/7/1360391327.geojson``.

    Raises:
        UnsupportedQualifier: If a qualifier has no rule in ``rules``.
    """
    return f"{id2path(id)}/{id2fname(id, args, rules)}"


__all__ = [
    "URIArgs",
    "QualifierRules",
    "DEFAULT_RULES",
    "alt_geometry_rule",
    "parse_uri",
    "id2path",
    "id2fname",
    "id2relpath",
]
