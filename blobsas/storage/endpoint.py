"""Blob endpoint resolution for storage accounts.

Builds absolute blob URLs from an account name, container and blob path.
Path segments are percent-encoded; ``/`` separators inside the blob path
are kept.

Example:
    resolver = BlobEndpointResolver("myaccount")
    resolver.get_blob_url("uploads", "a/b c.pdf")
    # 'https://myaccount.blob.core.windows.net/uploads/a/b%20c.pdf'
"""

from typing import Optional
from urllib.parse import quote

from blobsas.exceptions import InvalidArgumentError, require_text

DEFAULT_ENDPOINT_SUFFIX = "core.windows.net"


def encode_blob_path(blob_path: str) -> str:
    """Percent-encode a blob path, keeping ``/`` separators."""
    return quote(blob_path, safe="/~")


class BlobEndpointResolver:
    """Resolves blob URLs for a storage account.

    Uses ``<scheme>://<account>.<service>.<suffix>`` unless a custom
    ``base_url`` is configured (emulators, private endpoints), in which case
    the account name is not part of the host.
    """

    def __init__(
        self,
        account_name: str,
        *,
        endpoint_suffix: str = DEFAULT_ENDPOINT_SUFFIX,
        scheme: str = "https",
        service: str = "blob",
        base_url: Optional[str] = None,
    ):
        self.account_name = require_text("account_name", account_name)
        if scheme not in ("http", "https"):
            raise InvalidArgumentError("scheme", f"Scheme must be http or https, got {scheme!r}")
        self.endpoint_suffix = endpoint_suffix
        self.scheme = scheme
        self.service = service
        self.base_url = base_url.rstrip("/") if base_url else None

    @property
    def account_url(self) -> str:
        """Account endpoint without a trailing slash."""
        if self.base_url:
            return self.base_url
        return f"{self.scheme}://{self.account_name}.{self.service}.{self.endpoint_suffix}"

    def get_container_url(self, container: str) -> str:
        require_text("container", container)
        return f"{self.account_url}/{quote(container, safe='')}"

    def get_blob_url(self, container: str, blob_path: str) -> str:
        """Absolute blob URL with percent-encoded path."""
        require_text("blob_path", blob_path)
        return f"{self.get_container_url(container)}/{encode_blob_path(blob_path)}"

