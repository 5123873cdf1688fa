"""Document-store resolvers backed by a single collection of catalog records.

Every collection answers point lookups keyed by record identifier and returns
a mapping with at least a ``repo_name`` field. Supported URIs:

- ``mem://<collection>/<key_field>?filename=<records.json>``
- ``mongo://<database>/<collection>?id_field=<field>`` (server from ``MONGO_SERVER_URL``)
- ``awsdynamodb://<table>?region=..&endpoint=..&credentials=..&partition_key=<field>``
"""

from __future__ import annotations

import asyncio
import json
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Dict, Iterable, Optional
from urllib.parse import urlparse

from boto3.dynamodb.types import TypeDeserializer
from botocore.exceptions import BotoCoreError, ClientError
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from findingaid_shared.constants import DEFAULT_KEY_FIELD, REPO_NAME_FIELD
from findingaid_shared.errors import BackendError, ConfigurationError, NotFound

from . import dynamodb
from .logging_config import log
from .resolver import Resolver, ResolverRegistry

DEFAULT_MONGO_SERVER_URL = "mongodb://localhost:27017"


class Collection(ABC):
    """A collection of catalog records addressed by a single key field."""

    key_field = DEFAULT_KEY_FIELD

    @abstractmethod
    def get(self, key: int) -> Optional[Mapping]:
        """Return the record stored under ``key``, or ``None`` when absent."""

    def close(self) -> None:
        pass


class MemoryCollection(Collection):
    """In-process collection, optionally loaded from a JSON file."""

    def __init__(self, key_field: str = DEFAULT_KEY_FIELD, records: Iterable[Mapping] = ()):
        self.key_field = key_field
        self._records: Dict[int, Mapping] = {}
        for rec in records:
            self._records[int(rec[key_field])] = rec

    @classmethod
    def from_file(cls, path: str, key_field: str = DEFAULT_KEY_FIELD) -> "MemoryCollection":
        """Load records from a JSON list of records or a mapping of id to record.

        Raises:
            ConfigurationError: If the file cannot be read or parsed.
        """
        try:
            with Path(path).open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"Failed to load records from '{path}', {exc}") from exc

        if isinstance(data, dict):
            records = [{key_field: k, **v} for k, v in data.items() if isinstance(v, dict)]
        elif isinstance(data, list):
            records = [r for r in data if isinstance(r, dict) and key_field in r]
        else:
            raise ConfigurationError(f"'{path}' does not contain a list or mapping of records")

        try:
            return cls(key_field, records)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"'{path}' contains a non-numeric {key_field}, {exc}") from exc

    def get(self, key: int) -> Optional[Mapping]:
        return self._records.get(key)


class MongoCollection(Collection):
    """Collection stored in a MongoDB database."""

    def __init__(self, server_url: str, database: str, collection: str, key_field: str = DEFAULT_KEY_FIELD):
        self.key_field = key_field
        self._cli = MongoClient(server_url)
        self._coll = self._cli[database][collection]

    def get(self, key: int) -> Optional[Mapping]:
        try:
            return self._coll.find_one({self.key_field: key}, {"_id": False})
        except PyMongoError as exc:
            raise BackendError(f"MongoDB lookup failed for {key}: {exc}") from exc

    def close(self) -> None:
        self._cli.close()


class DynamoDBCollection(Collection):
    """Collection stored in a DynamoDB table with a numeric partition key."""

    def __init__(self, client, table_name: str, partition_key: str = DEFAULT_KEY_FIELD):
        self.key_field = partition_key
        self.table_name = table_name
        self._client = client
        self._deserializer = TypeDeserializer()

    def open(self) -> "DynamoDBCollection":
        """Verify the table exists and is reachable.

        Raises:
            ConfigurationError: If the table cannot be described.
        """
        try:
            self._client.describe_table(TableName=self.table_name)
        except (BotoCoreError, ClientError) as exc:
            raise ConfigurationError(f"Failed to open table '{self.table_name}', {exc}") from exc
        return self

    def get(self, key: int) -> Optional[Mapping]:
        try:
            rsp = self._client.get_item(
                TableName=self.table_name,
                Key={self.key_field: {"N": str(key)}},
            )
        except (BotoCoreError, ClientError) as exc:
            raise BackendError(f"DynamoDB lookup failed for {key}: {exc}") from exc

        item = rsp.get("Item")
        if item is None:
            return None
        return {k: self._deserializer.deserialize(v) for k, v in item.items()}


class DocstoreResolver(Resolver):
    """Resolver issuing point lookups against a single open collection."""

    def __init__(self, collection: Collection):
        self.collection = collection

    async def get_repo(self, id: int) -> str:
        try:
            record = await asyncio.to_thread(self.collection.get, id)
        except BackendError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise BackendError(f"Failed to get record for {id}, {exc}") from exc

        if record is None:
            raise NotFound(f"no record for {id}")

        if not isinstance(record, Mapping):
            raise BackendError(f"record for {id} is not a mapping")

        repo = record.get(REPO_NAME_FIELD)
        if not isinstance(repo, str) or not repo:
            raise BackendError(f"record for {id} has no valid '{REPO_NAME_FIELD}' field")

        return repo

    async def close(self) -> None:
        await asyncio.to_thread(self.collection.close)


def open_collection(uri: str) -> Collection:
    """Open a generic document-store collection from its URI.

    Raises:
        ConfigurationError: If the scheme is not a generic document store or opening fails.
    """
    u = urlparse(uri)
    q = dynamodb.query_params(uri)
    scheme = u.scheme.lower()

    if scheme == "mem":
        key_field = u.path.strip("/") or DEFAULT_KEY_FIELD
        filename = q.get("filename")
        if filename:
            return MemoryCollection.from_file(filename, key_field)
        return MemoryCollection(key_field)

    if scheme == "mongo":
        database = u.netloc
        collection = u.path.strip("/")
        if not database or not collection:
            raise ConfigurationError("mongo URIs must be 'mongo://<database>/<collection>'")
        server_url = os.getenv("MONGO_SERVER_URL", DEFAULT_MONGO_SERVER_URL)
        try:
            return MongoCollection(server_url, database, collection, q.get("id_field") or DEFAULT_KEY_FIELD)
        except PyMongoError as exc:
            raise ConfigurationError(f"Failed to connect to MongoDB, {exc}") from exc

    raise ConfigurationError(f"unsupported document store scheme '{scheme}'")


def new_docstore_resolver(uri: str) -> Resolver:
    """Return a resolver over a generic document-store collection opened from ``uri``."""
    collection = open_collection(uri)
    log.info("Opened docstore collection", extra={"scheme": urlparse(uri).scheme, "key_field": collection.key_field})
    return DocstoreResolver(collection)


def new_dynamodb_resolver(uri: str) -> Resolver:
    """Return a resolver over a DynamoDB table described by ``uri``.

    The client is built from the ``region``, ``endpoint`` and ``credentials``
    query parameters; the table name comes from the URI host and the partition
    key from ``partition_key``.

    Raises:
        ConfigurationError: If the client cannot be created or the table opened.
    """
    client = dynamodb.new_client_with_uri(uri)

    u = urlparse(uri)
    table_name = u.netloc.lstrip("/")
    if not table_name:
        raise ConfigurationError("awsdynamodb URIs must name a table, e.g. 'awsdynamodb://findingaid'")

    partition_key = dynamodb.query_params(uri).get("partition_key") or DEFAULT_KEY_FIELD

    collection = DynamoDBCollection(client, table_name, partition_key).open()
    log.info("Opened DynamoDB collection", extra={"table": table_name, "partition_key": partition_key})
    return DocstoreResolver(collection)


def register_resolvers(registry: ResolverRegistry) -> None:
    """Register the document-store resolver schemes with ``registry``."""
    registry.register("mem", new_docstore_resolver)
    registry.register("mongo", new_docstore_resolver)
    registry.register("awsdynamodb", new_dynamodb_resolver)


__all__ = [
    "Collection",
    "MemoryCollection",
    "MongoCollection",
    "DynamoDBCollection",
    "DocstoreResolver",
    "open_collection",
    "new_docstore_resolver",
    "new_dynamodb_resolver",
    "register_resolvers",
]
