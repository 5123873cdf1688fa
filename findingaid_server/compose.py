"""Compose redirect targets from a URI template, a repository name and a relative path.

The template is an RFC 6570 template with a single ``repo`` variable, e.g.
``https://raw.githubusercontent.com/whosonfirst-data/{repo}/master/data``.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse, urlunparse

from uritemplate import URITemplate

from findingaid_shared.constants import TEMPLATE_REPO_VARIABLE
from findingaid_shared.errors import TemplateExpansionError

_RE_REPO = re.compile(r"[A-Za-z0-9._~\-]+")


def parse_template(template: str) -> URITemplate:
    """Parse a data URI template.

    Args:
        template: Template string with exactly one ``{repo}`` variable.

    Returns:
        URITemplate: Parsed template.

    Raises:
        TemplateExpansionError: If the template is empty or its variables are not exactly ``repo``.
    """
    if not template or not isinstance(template, str):
        raise TemplateExpansionError("empty data URI template")

    t = URITemplate(template)
    names = set(t.variable_names)
    if names != {TEMPLATE_REPO_VARIABLE}:
        raise TemplateExpansionError(
            f"data URI template must have exactly one '{TEMPLATE_REPO_VARIABLE}' variable, found {sorted(names)}"
        )
    return t


def expand(template: URITemplate, repo: str) -> str:
    """Expand ``template`` with ``repo`` bound to its placeholder.

    Raises:
        TemplateExpansionError: If ``repo`` is not a plain repository name or the
            expansion is not an absolute http(s) URL.
    """
    if not isinstance(repo, str) or not _RE_REPO.fullmatch(repo) or ".." in repo:
        raise TemplateExpansionError(f"invalid repository name {repo!r}")

    root = template.expand({TEMPLATE_REPO_VARIABLE: repo})

    u = urlparse(root)
    if u.scheme not in ("http", "https") or not u.netloc:
        raise TemplateExpansionError(f"template expanded to a non-absolute URL '{root}'")
    return root


def join_url(root: str, relpath: str) -> str:
    """Append ``relpath`` to the path of ``root``.

    Empty and ``.`` segments are dropped so separators are never doubled.
    Query and fragment of ``root`` are kept.

    Raises:
        TemplateExpansionError: If ``relpath`` contains a ``..`` segment.
    """
    u = urlparse(root)

    segments = []
    for seg in relpath.split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            raise TemplateExpansionError(f"relative path '{relpath}' escapes the repository root")
        segments.append(seg)

    base = u.path.rstrip("/")
    path = "/".join([base] + segments) if segments else (base or "/")
    return urlunparse(u._replace(path=path))


def compose(template: URITemplate, repo: str, relpath: str) -> str:
    """Return the absolute data URL for ``relpath`` inside repository ``repo``."""
    return join_url(expand(template, repo), relpath)


__all__ = ["parse_template", "expand", "join_url", "compose"]
