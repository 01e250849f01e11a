# ==============================================================================
# Valkey Document Store Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the DocumentStore interface.

Key layout (all keys share the configured namespace prefix):
- {ns}:doc:{path}                 -> JSON string with the document fields
- {ns}:col:{collection}           -> sorted set of document ids (insertion order)
- {ns}:idx:{collection}:{field}   -> sorted set of document ids scored by a
                                     numeric top-level field
- {ns}:seq                        -> insertion counter

Every top-level int/float field is indexed, so range queries work on any
numeric field (dateKey, lastActive, createdAt, timestamp). A document write and
its index updates run in one WATCH/MULTI transaction, which gives per-document
atomicity. Nothing spans two documents.

Reads retry transient connection errors; writes are attempted exactly once.
"""

from __future__ import annotations

import json
import logging
import secrets
import string

import redis
from redis.backoff import NoBackoff
from redis.exceptions import RedisError
from redis.retry import Retry

from sessionlog.base.document_store import (
    DocumentStore,
    check_collection_path,
    split_document_path,
)
from sessionlog.exceptions import DocumentNotFoundError, PersistenceError
from sessionlog.utils.config import get_settings
from sessionlog.utils.retry import REDIS_RETRY_EXCEPTIONS, retry_light

logger = logging.getLogger(__name__)

# Store-generated ids: 20 alphanumeric characters
AUTO_ID_ALPHABET = string.ascii_letters + string.digits
AUTO_ID_LENGTH = 20


def generate_document_id() -> str:
    """Generate a random document id."""
    return "".join(secrets.choice(AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


def _numeric_fields(data: dict) -> dict[str, float]:
    """Top-level fields that can be indexed (bools excluded)."""
    return {
        key: value
        for key, value in data.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }


class ValkeyDocumentStore(DocumentStore):
    """
    Valkey/Redis implementation of DocumentStore.

    Configured with:
    - Socket timeouts for fast failure detection
    - No client-level retries, so each write reaches the server at most once
    - Health check interval to keep connections alive
    """

    def __init__(
        self,
        url: str | None = None,
        namespace: str | None = None,
        socket_timeout: int | None = None,
        health_check_interval: int = 30,
        client: redis.Redis | None = None,
    ):
        """
        Initialize the document store.

        Args:
            url: Valkey/Redis connection URL. If None, uses settings.
            namespace: Key prefix. If None, uses settings.
            socket_timeout: Socket timeout in seconds. If None, uses settings.
            health_check_interval: Health check interval in seconds (default: 30)
            client: Pre-built Redis client (must use decode_responses=True).
                When given, url and socket_timeout are ignored.
        """
        settings = get_settings()
        self._namespace = namespace or settings.valkey.namespace

        if client is None:
            url = url or settings.valkey.url
            timeout = socket_timeout or settings.valkey.socket_timeout
            client = redis.from_url(
                url,
                decode_responses=True,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
                retry=Retry(NoBackoff(), retries=0),
                health_check_interval=health_check_interval,
            )
        self._client = client

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client for advanced operations."""
        return self._client

    @property
    def namespace(self) -> str:
        return self._namespace

    # ==========================================================================
    # Key helpers
    # ==========================================================================

    def _doc_key(self, path: str) -> str:
        return f"{self._namespace}:doc:{path}"

    def _members_key(self, collection: str) -> str:
        return f"{self._namespace}:col:{collection}"

    def _index_key(self, collection: str, field: str) -> str:
        return f"{self._namespace}:idx:{collection}:{field}"

    def _seq_key(self) -> str:
        return f"{self._namespace}:seq"

    def _decode(self, path: str, raw: str | None) -> dict | None:
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Failed to decode JSON for document %s", path)
            return None
        _, doc_id = split_document_path(path)
        return {**data, "id": doc_id}

    def _write_document(self, pipe, collection: str, doc_id: str, old: dict, new: dict, seq: int):
        """Queue the document body, membership and index updates on a MULTI pipeline."""
        path = f"{collection}/{doc_id}"
        pipe.set(self._doc_key(path), json.dumps(new))
        pipe.zadd(self._members_key(collection), {doc_id: seq}, nx=True)

        old_indexed = _numeric_fields(old)
        new_indexed = _numeric_fields(new)
        for field in old_indexed.keys() - new_indexed.keys():
            pipe.zrem(self._index_key(collection, field), doc_id)
        for field, value in new_indexed.items():
            pipe.zadd(self._index_key(collection, field), {doc_id: value})

    # ==========================================================================
    # Reads
    # ==========================================================================

    @retry_light(REDIS_RETRY_EXCEPTIONS, logger)
    def _mget(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        return self._client.mget(keys)

    @retry_light(REDIS_RETRY_EXCEPTIONS, logger)
    def _zrange_ids(self, key: str, descending: bool, limit: int | None) -> list[str]:
        stop = -1 if limit is None else limit - 1
        if limit is not None and limit <= 0:
            return []
        if descending:
            return self._client.zrevrange(key, 0, stop)
        return self._client.zrange(key, 0, stop)

    @retry_light(REDIS_RETRY_EXCEPTIONS, logger)
    def _zrange_by_score(
        self,
        key: str,
        start: float | None,
        end: float | None,
        descending: bool,
        limit: int | None,
    ) -> list[str]:
        low = "-inf" if start is None else start
        high = "+inf" if end is None else end
        paging = {} if limit is None else {"start": 0, "num": limit}
        if descending:
            return self._client.zrevrangebyscore(key, high, low, **paging)
        return self._client.zrangebyscore(key, low, high, **paging)

    def _fetch_collection(self, collection: str, ids: list[str]) -> list[dict]:
        paths = [f"{collection}/{doc_id}" for doc_id in ids]
        raws = self._mget([self._doc_key(p) for p in paths])
        documents = []
        for path, raw in zip(paths, raws):
            document = self._decode(path, raw)
            if document is not None:
                documents.append(document)
        return documents

    def get(self, path: str) -> dict | None:
        split_document_path(path)
        try:
            raws = self._mget([self._doc_key(path)])
        except RedisError as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e
        return self._decode(path, raws[0])

    def get_many(self, paths: list[str]) -> list[dict | None]:
        for path in paths:
            split_document_path(path)
        try:
            raws = self._mget([self._doc_key(p) for p in paths])
        except RedisError as e:
            raise PersistenceError(f"Failed to read {len(paths)} documents: {e}") from e
        return [self._decode(path, raw) for path, raw in zip(paths, raws)]

    def list(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        check_collection_path(collection)
        key = (
            self._index_key(collection, order_by)
            if order_by
            else self._members_key(collection)
        )
        try:
            ids = self._zrange_ids(key, descending, limit)
            return self._fetch_collection(collection, ids)
        except RedisError as e:
            raise PersistenceError(f"Failed to list {collection}: {e}") from e

    def query_range(
        self,
        collection: str,
        field: str,
        start: float | None = None,
        end: float | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        check_collection_path(collection)
        try:
            ids = self._zrange_by_score(
                self._index_key(collection, field), start, end, descending, limit
            )
            documents = self._fetch_collection(collection, ids)
        except RedisError as e:
            raise PersistenceError(f"Failed to query {collection} by {field}: {e}") from e
        logger.debug(
            "Range query %s.%s [%s, %s] returned %d documents",
            collection,
            field,
            start,
            end,
            len(documents),
        )
        return documents

    def count(self, collection: str) -> int:
        check_collection_path(collection)
        try:
            return self._zcard(self._members_key(collection))
        except RedisError as e:
            raise PersistenceError(f"Failed to count {collection}: {e}") from e

    @retry_light(REDIS_RETRY_EXCEPTIONS, logger)
    def _zcard(self, key: str) -> int:
        return self._client.zcard(key)

    # ==========================================================================
    # Writes
    # ==========================================================================

    def set(self, path: str, data: dict) -> None:
        collection, doc_id = split_document_path(path)
        doc_key = self._doc_key(path)

        def _txn(pipe):
            raw = pipe.get(doc_key)
            old = json.loads(raw) if raw else {}
            pipe.multi()
            self._write_document(pipe, collection, doc_id, old, data, seq)

        try:
            seq = self._client.incr(self._seq_key())
            self._client.transaction(_txn, doc_key)
        except RedisError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def update(self, path: str, fields: dict, keep_max: tuple[str, ...] = ()) -> None:
        collection, doc_id = split_document_path(path)
        doc_key = self._doc_key(path)

        def _txn(pipe):
            raw = pipe.get(doc_key)
            if raw is None:
                raise DocumentNotFoundError(path)
            old = json.loads(raw)
            new = {**old, **fields}
            for field in keep_max:
                if field in old and field in fields:
                    new[field] = max(old[field], fields[field])
            pipe.multi()
            # Existing members keep their insertion score because of nx=True
            self._write_document(pipe, collection, doc_id, old, new, 0)

        try:
            self._client.transaction(_txn, doc_key)
        except RedisError as e:
            raise PersistenceError(f"Failed to update {path}: {e}") from e

    def add(self, collection: str, data: dict) -> str:
        check_collection_path(collection)
        doc_id = generate_document_id()
        self.set(f"{collection}/{doc_id}", data)
        return doc_id

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def ping(self) -> bool:
        """
        Check if the store is reachable.

        Returns:
            True if ping succeeds, False otherwise
        """
        try:
            return self._client.ping()
        except Exception:
            return False

    def close(self) -> None:
        """Close the connection."""
        self._client.close()


def get_document_store() -> ValkeyDocumentStore:
    """
    Get a ValkeyDocumentStore instance configured from settings.

    For long-lived applications, create a single instance and reuse it.
    """
    return ValkeyDocumentStore()


def check_valkey_connection() -> bool:
    """
    Check if Valkey is reachable.

    Uses a shorter timeout (5 seconds) since this is just a health check.

    Returns:
        True if Valkey responds to ping, False otherwise
    """
    try:
        settings = get_settings()
        client = redis.from_url(
            settings.valkey.url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        client.ping()
        client.close()
        return True
    except Exception:
        return False
