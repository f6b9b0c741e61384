"""
Storage Account Interface

Defines the capabilities SAS issuance needs from a storage account client.
The core never talks to the network itself; it asks an implementation of
this interface to resolve blob URLs and to check existence.

Author: blobsas contributors
"""

from abc import ABC, abstractmethod


class StorageAccountClient(ABC):
    """
    Abstract storage account capabilities.

    **Contract**:
    - get_blob_url() is pure and synchronous (no I/O)
    - container_exists() and blob_exists() may perform I/O and are awaited
    - existence checks return False for missing resources; any other failure
      is raised to the caller and is not retried by blobsas
    """

    @property
    @abstractmethod
    def account_name(self) -> str:
        """Storage account name."""

    @abstractmethod
    def get_blob_url(self, container: str, blob_path: str) -> str:
        """
        Resolve the absolute base URL of a blob (no query string).

        Args:
            container: Container name
            blob_path: Blob path within the container (not encoded)

        Returns:
            Absolute URL with percent-encoded path segments
        """

    @abstractmethod
    async def container_exists(self, container: str) -> bool:
        """Return True if the container exists."""

    @abstractmethod
    async def blob_exists(self, container: str, blob_path: str) -> bool:
        """Return True if the blob exists in the container."""
