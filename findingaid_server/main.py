import asyncio
import os
import sys
from argparse import ArgumentParser
from pathlib import Path
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import uvicorn
import yaml

from findingaid_shared.errors import ConfigurationError, FindingAidError

from . import compose
from .http_gateway import create_app
from .logging_config import configure_logging, log
from .resolver import ResolverRegistry, default_registry

DEFAULTS = {
    "server_uri": "http://localhost:8080",
    "resolver_uri": "https://data.whosonfirst.org/findingaid",
    "data_uri_template": "https://raw.githubusercontent.com/whosonfirst-data/{repo}/master/data",
    "lookup_timeout": None,
    "log_level": "INFO",
}

ENV_PREFIX = "WHOSONFIRST"


def set_config(path: Path = Path("config.yaml")) -> dict:
    """Build configuration from defaults, a local config.yaml and environment variables.

    Environment variables are the upper-cased keys prefixed with ``WHOSONFIRST_``
    (e.g. ``WHOSONFIRST_RESOLVER_URI``); ``LOG_LEVEL`` sets the log level.

    Args:
        path: Location of the optional YAML config file.

    Returns:
        dict: Configuration map.
    """
    cfg: dict = dict(DEFAULTS)

    # First, load config from local config.yaml if it exists
    try:
        if path.exists():
            with path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
            if not isinstance(data, dict):
                log.warning("Config file %s does not contain a mapping", path)
            else:
                cfg.update({k: v for k, v in data.items() if k in DEFAULTS})
    except (OSError, yaml.YAMLError) as exc:
        log.warning("Failed to load config from %s: %s", path, exc)

    # If environment variables are set, they override config.yaml values
    for key in DEFAULTS:
        value = os.getenv(f"{ENV_PREFIX}_{key.upper()}")
        if value:
            cfg[key] = value

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        cfg["log_level"] = log_level

    return cfg


def _mask_uri(uri: str) -> str:
    """Mask static credentials in a resolver URI query string."""
    u = urlparse(uri)
    if not u.query:
        return uri
    params = []
    for k, v in parse_qsl(u.query, keep_blank_values=True):
        if k == "credentials" and v.startswith("static:"):
            v = "static:***"
        elif _is_sensitive_key(k):
            v = _mask_value(v)
        params.append((k, v))
    return urlunparse(u._replace(query=urlencode(params, safe=":/")))


def _mask_sensitive(data):
    """Return a copy of config data with sensitive values masked."""
    if isinstance(data, dict):
        return {k: _mask_sensitive_value(k, v) for k, v in data.items()}
    if isinstance(data, list):
        return [_mask_sensitive(item) for item in data]
    return data


def _mask_sensitive_value(key: str, value):
    """Mask password values and URI credentials; leave others unchanged."""
    if isinstance(value, dict):
        return _mask_sensitive(value)
    if isinstance(value, list):
        return [_mask_sensitive_value(key, item) for item in value]
    if isinstance(value, str) and key.endswith("_uri"):
        return _mask_uri(value)
    if isinstance(value, str) and _is_sensitive_key(key):
        return _mask_value(value)
    return value


def _mask_value(value: str) -> str:
    if len(value) <= 6:
        return f"{value[:1]}***{value[-1:]}"
    return f"{value[:3]}***{value[-3:]}"


def _is_sensitive_key(key: str) -> bool:
    """Return True if the key name indicates sensitive content."""
    key_lower = key.lower()
    return any(token in key_lower for token in ("password", "secret", "token", "key"))


def _parse_server_uri(uri: str) -> tuple[str, int]:
    """Return host/port to bind from a server URI like ``http://localhost:8080``.

    Raises:
        ConfigurationError: If the port is not a valid number.
    """
    u = urlparse(uri if "://" in uri else f"http://{uri}")
    try:
        port = u.port
    except ValueError as exc:
        raise ConfigurationError(f"invalid server URI '{uri}', {exc}") from exc
    return u.hostname or "localhost", port or 8080


def _parse_args(argv, cfg: dict):
    parser = ArgumentParser(description="Who's On First finding aid redirect server")
    parser.add_argument("--server-uri", default=cfg["server_uri"], help="Address to listen on")
    parser.add_argument("--resolver-uri", default=cfg["resolver_uri"], help="Repository resolver URI")
    parser.add_argument(
        "--data-uri-template", default=cfg["data_uri_template"], help="URI template for repository data roots"
    )
    parser.add_argument(
        "--lookup-timeout",
        type=float,
        default=cfg["lookup_timeout"],
        help="Deadline in seconds for repository lookups",
    )
    parser.add_argument("--log-level", default=cfg["log_level"], help="Logging level")
    return parser.parse_args(argv)


def build_app(cfg: dict, registry: ResolverRegistry | None = None):
    """Create the resolver, template and application described by ``cfg``.

    Raises:
        FindingAidError: If the resolver or template cannot be created.
    """
    registry = registry or default_registry()
    resolver = registry.new_resolver(cfg["resolver_uri"])
    template = compose.parse_template(cfg["data_uri_template"])

    timeout = cfg.get("lookup_timeout")
    return create_app(resolver, template, lookup_timeout=float(timeout) if timeout else None)


async def main(argv: list[str] | None = None, registry: ResolverRegistry | None = None):
    """Entrypoint: build the redirect application and serve it with uvicorn.

    Args:
        argv: Command-line arguments; defaults to ``sys.argv[1:]``.
        registry: Optional resolver registry; defaults to ``default_registry()``.

    Returns:
        None
    """
    cfg = set_config()
    args = _parse_args(argv, cfg)
    cfg.update(
        server_uri=args.server_uri,
        resolver_uri=args.resolver_uri,
        data_uri_template=args.data_uri_template,
        lookup_timeout=args.lookup_timeout,
        log_level=args.log_level,
    )

    configure_logging(cfg["log_level"])
    log.info("Configuration loaded: %s", _mask_sensitive(cfg))

    app = build_app(cfg, registry)

    host, port = _parse_server_uri(cfg["server_uri"])
    log.info("Listening for requests on %s:%s", host, port)

    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_config=None))
    await server.serve()


def run():
    """Console entrypoint; startup errors are fatal."""
    try:
        asyncio.run(main())
    except FindingAidError as exc:
        log.error("Failed to start server: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        log.info("Server stopped by user")


if __name__ == "__main__":
    run()
