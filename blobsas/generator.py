"""
SAS URL generator.

Issues container SAS query strings, blob SAS URLs, and batches of blob SAS
URLs. Signing is pure and needs no network access; only the checked batch
consults the storage account for existence.

Example:
    credential = SharedKeyCredential("myaccount", account_key)
    generator = SasUrlGenerator(credential)

    query = generator.build_container_sas("uploads", "rl", 15)
    url = generator.build_blob_sas_url("uploads", "seller/3683/contract.pdf", "r", 15)

Author: blobsas contributors
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Union

from blobsas.auth.credentials import SharedKeyCredential
from blobsas.auth.signer import Signer
from blobsas.core.config_manager import BlobSasConfig
from blobsas.core.logging_config import log_with_context
from blobsas.exceptions import (
    ContainerNotFoundError,
    InvalidArgumentError,
    require_positive,
    require_text,
)
from blobsas.sas.builder import SasBuilder
from blobsas.sas.canonicalizer import SasCanonicalizer
from blobsas.sas.models import (
    BlobScope,
    ContainerScope,
    ResponseHeaderOverrides,
    SasUrlMap,
    SignedQuery,
    ValidityWindow,
)
from blobsas.sas.permissions import BlobSasPermissions, ContainerSasPermissions
from blobsas.storage.endpoint import BlobEndpointResolver
from blobsas.storage.interface import StorageAccountClient

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

ContainerPermissionsLike = Union[ContainerSasPermissions, str]
BlobPermissionsLike = Union[BlobSasPermissions, str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SasUrlGenerator:
    """
    Issues SAS tokens for containers and blobs of one storage account.

    The generator holds no mutable state and may be shared between threads
    and tasks.
    """

    def __init__(
        self,
        credential: SharedKeyCredential,
        storage: Optional[StorageAccountClient] = None,
        config: Optional[BlobSasConfig] = None,
        *,
        clock: Clock = utc_now,
        canonicalizer: Optional[SasCanonicalizer] = None,
    ):
        """
        Initialize the generator.

        Args:
            credential: Shared key credential used for signing
            storage: Storage account client for URL resolution and existence
                     checks. Without one, URLs come from the configured
                     endpoint and checked batches are unavailable.
            config: Configuration; defaults apply when omitted
            clock: Source of the current UTC time
            canonicalizer: String-to-sign tables; defaults to the built-in ones
        """
        self.config = config or BlobSasConfig()
        self.credential = credential
        self.storage = storage
        self._clock = clock

        endpoint = self.config.endpoint
        self._resolver = BlobEndpointResolver(
            credential.account_name,
            endpoint_suffix=endpoint.endpoint_suffix,
            scheme=endpoint.scheme,
            service=endpoint.service,
            base_url=endpoint.base_url,
        )
        self._builder = SasBuilder(
            Signer(credential),
            canonicalizer=canonicalizer,
            version=self.config.sas.api_version,
        )

    # ------------------------------------------------------------------
    # Single grants
    # ------------------------------------------------------------------

    def validity_window(self, validity_minutes: Optional[int] = None) -> ValidityWindow:
        """Window from now minus the clock skew allowance to now plus validity."""
        if validity_minutes is None:
            validity_minutes = self.config.sas.default_validity_minutes
        return ValidityWindow.from_duration(
            self._clock(),
            validity_minutes,
            clock_skew=timedelta(minutes=self.config.sas.clock_skew_minutes),
        )

    def sign(
        self,
        scope: Union[ContainerScope, BlobScope],
        permissions,
        validity_minutes: Optional[int] = None,
        *,
        identifier: str = "",
        ip_range: str = "",
        encryption_scope: str = "",
        overrides: Optional[ResponseHeaderOverrides] = None,
    ) -> SignedQuery:
        """
        Sign a grant for a scope.

        Raises:
            InvalidArgumentError: If any input is invalid (raised before signing)
            InvalidCredentialError: If the account key cannot be decoded
        """
        window = self.validity_window(validity_minutes)
        descriptor = self._builder.describe(
            scope,
            permissions,
            window,
            identifier=identifier,
            ip_range=ip_range,
            protocol=self.config.sas.protocol,
            encryption_scope=encryption_scope,
            overrides=overrides,
        )
        return self._builder.build(descriptor)

    def build_container_sas(
        self,
        container: str,
        permissions: ContainerPermissionsLike,
        validity_minutes: Optional[int] = None,
        **options,
    ) -> str:
        """
        Build a container SAS query string.

        Only the query string is returned (no base URL, no leading ``?``); it
        can be appended to the URL of any blob in the container.

        Args:
            container: Container name
            permissions: Container permissions, e.g. "rl"
            validity_minutes: Minutes the grant stays valid

        Returns:
            Query string "sv=...&st=...&se=...&sr=c&sp=...&sig=..."
        """
        require_text("container", container)
        if validity_minutes is not None:
            require_positive("validity_minutes", validity_minutes)
        query = self.sign(ContainerScope(container), permissions, validity_minutes, **options)
        return query.to_query_string()

    def get_blob_url(self, container: str, blob_path: str) -> str:
        """Base URL of a blob, from the storage client when one is configured."""
        if self.storage is not None:
            return self.storage.get_blob_url(container, blob_path)
        return self._resolver.get_blob_url(container, blob_path)

    def build_blob_sas_url(
        self,
        container: str,
        blob_path: str,
        permissions: BlobPermissionsLike,
        validity_minutes: Optional[int] = None,
        **options,
    ) -> str:
        """
        Build an absolute blob URL carrying a blob SAS.

        Args:
            container: Container name
            blob_path: Blob path within the container, e.g. "a/b c.pdf"
            permissions: Blob permissions, e.g. "r"
            validity_minutes: Minutes the grant stays valid

        Returns:
            "https://<account>.blob.<suffix>/<container>/<encoded path>?sv=...&sr=b&...&sig=..."
        """
        require_text("container", container)
        require_text("blob_path", blob_path)
        if validity_minutes is not None:
            require_positive("validity_minutes", validity_minutes)
        query = self.sign(BlobScope(container, blob_path), permissions, validity_minutes, **options)
        return f"{self.get_blob_url(container, blob_path)}?{query.to_query_string()}"

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def _check_batch_args(self, container, blob_paths, validity_minutes) -> List[str]:
        require_text("container", container)
        if blob_paths is None:
            raise InvalidArgumentError("blob_paths", "'blob_paths' cannot be None")
        if isinstance(blob_paths, str):
            raise InvalidArgumentError("blob_paths", "'blob_paths' must be a sequence of paths, not a string")
        if validity_minutes is not None:
            require_positive("validity_minutes", validity_minutes)
        return [path for path in blob_paths if isinstance(path, str) and path.strip()]

    def build_many_sas_urls(
        self,
        container: str,
        blob_paths: Iterable[str],
        permissions: BlobPermissionsLike,
        validity_minutes: Optional[int] = None,
    ) -> SasUrlMap:
        """
        Issue a blob SAS URL for every non-blank path, without existence checks.

        Keys compare case-insensitively; a later path differing only by case
        replaces the earlier URL.

        Raises:
            InvalidArgumentError: If container is blank, blob_paths is None or
                                  validity_minutes is not positive
        """
        paths = self._check_batch_args(container, blob_paths, validity_minutes)
        permissions = BlobSasPermissions.coerce(permissions)

        result = SasUrlMap()
        for path in paths:
            result[path] = self.build_blob_sas_url(container, path, permissions, validity_minutes)
        logger.info(f"Issued {len(result)} blob SAS URLs for container {container}")
        return result

    async def build_many_sas_urls_checked(
        self,
        container: str,
        blob_paths: Iterable[str],
        permissions: BlobPermissionsLike,
        validity_minutes: Optional[int] = None,
    ) -> SasUrlMap:
        """
        Issue blob SAS URLs only for blobs that exist.

        The container is checked first. Blob existence checks run
        concurrently, at most ``sas.max_concurrency`` at a time. Missing blobs
        are left out of the mapping and listed in ``SasUrlMap.skipped``.
        Errors raised by the storage client propagate unchanged; if the call
        is cancelled, pending checks are cancelled and nothing is returned.

        Raises:
            InvalidArgumentError: If inputs are invalid or no storage client is configured
            ContainerNotFoundError: If the container does not exist
        """
        paths = self._check_batch_args(container, blob_paths, validity_minutes)
        permissions = BlobSasPermissions.coerce(permissions)
        if self.storage is None:
            raise InvalidArgumentError("storage", "A storage client is required for checked batches")

        if not await self.storage.container_exists(container):
            raise ContainerNotFoundError(container)

        unique_paths = list(dict.fromkeys(paths))
        semaphore = asyncio.Semaphore(self.config.sas.max_concurrency)

        async def check(path: str) -> bool:
            async with semaphore:
                return await self.storage.blob_exists(container, path)

        found = await asyncio.gather(*(check(path) for path in unique_paths))

        result = SasUrlMap()
        for path, exists in zip(unique_paths, found):
            if not exists:
                logger.debug(f"Skipping missing blob {container}/{path}")
                result.skipped.append(path)
                continue
            result[path] = self.build_blob_sas_url(container, path, permissions, validity_minutes)

        log_with_context(
            logger,
            logging.INFO,
            f"Issued {len(result)} blob SAS URLs for container {container}",
            container=container,
            requested=len(unique_paths),
            skipped=len(result.skipped),
        )
        return result
