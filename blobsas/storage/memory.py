"""
In-memory storage account

Process-local implementation of :class:`StorageAccountClient` holding
containers and blob names. Used for tests and for issuing checked SAS batches
without a live account.

Author: blobsas contributors
"""

import asyncio
import re
from typing import Dict, Iterable, List, Optional, Set

from blobsas.exceptions import ContainerNotFoundError, InvalidArgumentError, require_text
from blobsas.storage.endpoint import BlobEndpointResolver
from blobsas.storage.interface import StorageAccountClient


class ContainerNameValidator:
    """
    Validates blob storage container names.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens only
    - Must start and end with letter or number
    - No consecutive hyphens
    """

    PATTERN = re.compile(r'^[a-z0-9]([a-z0-9-]*[a-z0-9])?$')
    MIN_LENGTH = 3
    MAX_LENGTH = 63

    @classmethod
    def validate(cls, name: str) -> tuple[bool, Optional[str]]:
        """
        Validate a container name.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not name:
            return False, "Container name cannot be empty"
        if len(name) < cls.MIN_LENGTH:
            return False, f"Container name must be at least {cls.MIN_LENGTH} characters"
        if len(name) > cls.MAX_LENGTH:
            return False, f"Container name must be at most {cls.MAX_LENGTH} characters"
        if not cls.PATTERN.match(name):
            return False, "Container name must contain only lowercase letters, numbers, and hyphens, and must start/end with letter or number"
        if '--' in name:
            return False, "Container name cannot contain consecutive hyphens"
        return True, None


class InMemoryStorageAccount(StorageAccountClient):
    """
    In-memory storage account.

    Blob names are case-sensitive, as in the real service. Safe for concurrent
    use from asyncio tasks.
    """

    def __init__(self, account_name: str, resolver: Optional[BlobEndpointResolver] = None):
        """
        Initialize the account.

        Args:
            account_name: Storage account name
            resolver: URL resolver; defaults to the public cloud endpoint
        """
        self._account_name = require_text("account_name", account_name)
        self._resolver = resolver or BlobEndpointResolver(account_name)
        self._blobs: Dict[str, Set[str]] = {}  # container_name -> {blob_name}
        self._lock = asyncio.Lock()

    @property
    def account_name(self) -> str:
        return self._account_name

    def get_blob_url(self, container: str, blob_path: str) -> str:
        return self._resolver.get_blob_url(container, blob_path)

    async def create_container(self, name: str, blobs: Iterable[str] = ()) -> None:
        """
        Create a container, optionally seeded with blob names.

        Raises:
            InvalidArgumentError: If the container name is invalid
        """
        is_valid, error = ContainerNameValidator.validate(name)
        if not is_valid:
            raise InvalidArgumentError("container", error)
        async with self._lock:
            self._blobs.setdefault(name, set()).update(blobs)

    async def delete_container(self, name: str) -> None:
        """
        Delete a container and its blobs.

        Raises:
            ContainerNotFoundError: If the container doesn't exist
        """
        async with self._lock:
            if name not in self._blobs:
                raise ContainerNotFoundError(name)
            del self._blobs[name]

    async def put_blob(self, container: str, blob_path: str) -> None:
        """
        Record a blob in a container.

        Raises:
            ContainerNotFoundError: If the container doesn't exist
        """
        require_text("blob_path", blob_path)
        async with self._lock:
            if container not in self._blobs:
                raise ContainerNotFoundError(container)
            self._blobs[container].add(blob_path)

    async def delete_blob(self, container: str, blob_path: str) -> bool:
        """Remove a blob. Returns True if it existed."""
        async with self._lock:
            blobs = self._blobs.get(container)
            if blobs is None or blob_path not in blobs:
                return False
            blobs.remove(blob_path)
            return True

    async def list_blobs(self, container: str, prefix: Optional[str] = None) -> List[str]:
        """
        List blob names in a container, sorted.

        Raises:
            ContainerNotFoundError: If the container doesn't exist
        """
        async with self._lock:
            if container not in self._blobs:
                raise ContainerNotFoundError(container)
            names = self._blobs[container]
            if prefix:
                names = {name for name in names if name.startswith(prefix)}
            return sorted(names)

    async def container_exists(self, container: str) -> bool:
        async with self._lock:
            return container in self._blobs

    async def blob_exists(self, container: str, blob_path: str) -> bool:
        async with self._lock:
            return blob_path in self._blobs.get(container, ())

    async def reset(self) -> None:
        """Remove all containers and blobs."""
        async with self._lock:
            self._blobs.clear()
