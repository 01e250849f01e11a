# ==============================================================================
# User Directory
# ==============================================================================
"""
Lookups against the user details collection.

Documents live at users-details/{uid} and look like:

    {"details": {"email": "seller@example.com", "phoneNumber": "+91..."}}

UID to email lookups are memoised in an LRU cache owned by the directory,
including misses. Failed lookups are not cached.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field

from sessionlog.base import Cache, DocumentStore, join_path
from sessionlog.exceptions import SessionLogError
from sessionlog.infrastructure.cache import LRUCache
from sessionlog.utils.config import get_settings

logger = logging.getLogger(__name__)


class UserDetails(BaseModel):
    """A user directory entry."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    email: str | None = None
    phone_number: str | None = Field(None, alias="phoneNumber")

    @classmethod
    def from_document(cls, document: dict) -> "UserDetails":
        details = document.get("details") or {}
        return cls(
            uid=document["id"],
            email=details.get("email"),
            phone_number=details.get("phoneNumber"),
        )


class UserDirectory:
    """Resolves UIDs to emails and back."""

    def __init__(
        self,
        store: DocumentStore,
        cache: Cache | None = None,
        collection: str | None = None,
    ):
        settings = get_settings().directory
        self._store = store
        self._cache = cache if cache is not None else LRUCache(settings.email_cache_size)
        self._collection = collection or settings.collection

    @property
    def cache(self) -> Cache:
        return self._cache

    def get_details(self, uid: str) -> UserDetails | None:
        """
        Fetch one user's details.

        Returns:
            UserDetails, or None if the user is unknown or the read failed
        """
        try:
            document = self._store.get(join_path(self._collection, uid))
        except SessionLogError as e:
            logger.error("Error getting user details for %s: %s", uid, e)
            return None
        if document is None:
            return None
        return UserDetails.from_document(document)

    def get_email(self, uid: str) -> str | None:
        """Email for a UID (cached), None if unknown or the read failed."""
        try:
            return self.lookup_email(uid)
        except SessionLogError as e:
            logger.error("Failed to fetch email for UID %s: %s", uid, e)
            return None

    def lookup_email(self, uid: str) -> str | None:
        """
        Email for a UID (cached), None if unknown.

        Raises:
            PersistenceError: If the read fails (nothing is cached)
        """
        if self._cache.contains(uid):
            return self._cache.get(uid)

        document = self._store.get(join_path(self._collection, uid))
        email = None
        if document is not None:
            email = (document.get("details") or {}).get("email")
        self._cache.set(uid, email)
        return email

    def find_uid(self, email: str, exact: bool = True) -> str | None:
        """
        First UID whose email matches (case-insensitive).

        Args:
            email: Email to search for
            exact: Whole-address match when True, substring match when False
        """
        needle = email.strip().lower()
        for user in self._all_users():
            address = (user.email or "").lower()
            if not address:
                continue
            if (address == needle) if exact else (needle in address):
                return user.uid
        return None

    def find_uids(self, partial_email: str) -> list[UserDetails]:
        """All users whose email contains partial_email (case-insensitive)."""
        needle = partial_email.strip().lower()
        return [
            user
            for user in self._all_users()
            if user.email and needle in user.email.lower()
        ]

    def _all_users(self) -> list[UserDetails]:
        try:
            documents = self._store.list(self._collection)
        except SessionLogError as e:
            logger.error("Error listing %s: %s", self._collection, e)
            return []
        return [UserDetails.from_document(document) for document in documents]
