"""Construction of DynamoDB clients from ``awsdynamodb://`` configuration URIs.

The URI query string carries the client settings::

    awsdynamodb://findingaid?region=us-west-2&endpoint=http://localhost:8000&credentials=static:local:local:local

``credentials`` accepts ``anon:``, ``env:``, ``iam:``, ``static:KEY:SECRET[:TOKEN]``,
``PATH:PROFILE`` (a shared credentials file) or a bare profile name.
"""

from __future__ import annotations

from typing import Dict, Optional
from urllib.parse import parse_qs, urlparse

import boto3
import botocore.session
from botocore import UNSIGNED
from botocore.client import Config
from botocore.exceptions import BotoCoreError

from findingaid_shared.errors import ConfigurationError

from .logging_config import log


def query_params(uri: str) -> Dict[str, str]:
    """Return the first value of every query parameter in ``uri``."""
    return {k: v[0] for k, v in parse_qs(urlparse(uri).query).items() if v}


def _session(credentials: Optional[str], region: Optional[str]) -> tuple[boto3.session.Session, Optional[Config]]:
    """Return a boto3 session and optional client config for a credentials string.

    Args:
        credentials: Credentials descriptor from the URI, or ``None``.
        region: AWS region name.

    Returns:
        tuple[Session, Config | None]: Session plus client config (``UNSIGNED`` for ``anon:``).

    Raises:
        ConfigurationError: If the descriptor is not understood.
    """
    if not credentials or credentials in ("env:", "iam:"):
        return boto3.session.Session(region_name=region), None

    if credentials == "anon:":
        return boto3.session.Session(region_name=region), Config(signature_version=UNSIGNED)

    if credentials.startswith("static:"):
        parts = credentials.split(":")
        if len(parts) not in (3, 4):
            raise ConfigurationError("static credentials must be 'static:KEY:SECRET[:TOKEN]'")
        token = parts[3] if len(parts) == 4 and parts[3] else None
        session = boto3.session.Session(
            aws_access_key_id=parts[1],
            aws_secret_access_key=parts[2],
            aws_session_token=token,
            region_name=region,
        )
        return session, None

    if ":" in credentials:
        path, profile = credentials.rsplit(":", 1)
        if not path or not profile:
            raise ConfigurationError(f"invalid credentials descriptor '{credentials}'")
        core = botocore.session.Session()
        core.set_config_variable("credentials_file", path)
        return boto3.session.Session(botocore_session=core, profile_name=profile, region_name=region), None

    return boto3.session.Session(profile_name=credentials, region_name=region), None


def new_client_with_uri(uri: str):
    """Create a DynamoDB client configured from the query string of ``uri``.

    Args:
        uri: ``awsdynamodb://`` configuration URI.

    Returns:
        botocore.client.DynamoDB: Configured low-level client.

    Raises:
        ConfigurationError: If the credentials or region settings are unusable.
    """
    q = query_params(uri)
    region = q.get("region")
    endpoint = q.get("endpoint") or None

    log.info(
        "Creating DynamoDB client",
        extra={"region": region, "endpoint": endpoint},
    )

    try:
        session, config = _session(q.get("credentials"), region)
        return session.client("dynamodb", endpoint_url=endpoint, config=config)
    except BotoCoreError as exc:
        raise ConfigurationError(f"Failed to create DynamoDB client, {exc}") from exc


__all__ = ["new_client_with_uri", "query_params"]
