"""Who's On First finding aid redirect server package."""

__all__ = [
    "main",
    "http_gateway",
    "handlers",
    "compose",
    "resolver",
    "docstore",
    "dynamodb",
    "http_resolver",
    "logging_config",
]
