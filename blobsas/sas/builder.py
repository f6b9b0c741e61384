"""Signed query construction for blob service SAS tokens.

Turns a :class:`SasDescriptor` into a :class:`SignedQuery`: renders the
string-to-sign, signs it and emits the query parameters in the order the
service documents them.
"""

import logging
from typing import Optional, Union

from blobsas.auth.signer import Signer
from blobsas.exceptions import InvalidArgumentError
from blobsas.sas.canonicalizer import SasCanonicalizer
from blobsas.sas.models import (
    BlobScope,
    ContainerScope,
    ResponseHeaderOverrides,
    SasDescriptor,
    SignedQuery,
    ValidityWindow,
)
from blobsas.sas.permissions import BlobSasPermissions, ContainerSasPermissions, PermissionSet

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2020-08-04"

VALID_PROTOCOLS = ("https", "https,http")


def normalize_permissions(
    scope: Union[ContainerScope, BlobScope],
    permissions: Union[PermissionSet, str],
) -> str:
    """Render permissions for a scope in canonical order.

    Raises:
        InvalidArgumentError: If the set is empty or holds a permission the
                              scope does not support
    """
    permission_class = BlobSasPermissions if isinstance(scope, BlobScope) else ContainerSasPermissions
    if permissions is None:
        raise InvalidArgumentError("permissions", "Permissions are required")
    rendered = str(permission_class.coerce(permissions))
    if not rendered:
        raise InvalidArgumentError("permissions", "At least one permission is required")
    return rendered


class SasBuilder:
    """Builds signed SAS query parameters.

    Example:
        builder = SasBuilder(Signer(credential))
        query = builder.build(descriptor)
        query.to_query_string()
        # 'sv=2020-08-04&st=...&se=...&sr=c&sp=rl&sig=...'
    """

    def __init__(
        self,
        signer: Signer,
        canonicalizer: Optional[SasCanonicalizer] = None,
        version: str = DEFAULT_API_VERSION,
    ):
        self.signer = signer
        self.canonicalizer = canonicalizer or SasCanonicalizer()
        self.version = version
        # Fail on unsupported versions up front rather than on first use
        self.canonicalizer.layout_for(version)

    def _check_encryption_scope(self, version: str, encryption_scope: str) -> None:
        # ses outside the signed layout would go out unsigned
        if encryption_scope and "ses" not in self.canonicalizer.layout_for(version):
            raise InvalidArgumentError(
                "encryption_scope", f"API version {version} cannot sign an encryption scope"
            )

    def describe(
        self,
        scope: Union[ContainerScope, BlobScope],
        permissions: Union[PermissionSet, str],
        window: ValidityWindow,
        *,
        identifier: str = "",
        ip_range: str = "",
        protocol: Optional[str] = None,
        encryption_scope: str = "",
        overrides: Optional[ResponseHeaderOverrides] = None,
    ) -> SasDescriptor:
        """Assemble a descriptor for this builder's account and version."""
        if protocol and protocol not in VALID_PROTOCOLS:
            raise InvalidArgumentError(
                "protocol", f"Protocol must be one of {', '.join(VALID_PROTOCOLS)}, got {protocol!r}"
            )
        self._check_encryption_scope(self.version, encryption_scope)
        return SasDescriptor(
            account_name=self.signer.account_name,
            scope=scope,
            permissions=normalize_permissions(scope, permissions),
            window=window,
            version=self.version,
            identifier=identifier or "",
            ip_range=ip_range or "",
            protocol=protocol or "",
            encryption_scope=encryption_scope or "",
            overrides=overrides or ResponseHeaderOverrides(),
        )

    def build(self, descriptor: SasDescriptor) -> SignedQuery:
        """Sign a descriptor and return its query parameters.

        Args:
            descriptor: SAS descriptor

        Returns:
            SignedQuery with the signature as the last parameter

        Raises:
            InvalidArgumentError: If the descriptor's version is unsupported or
                                  cannot sign its encryption scope
            InvalidCredentialError: If the account key cannot be decoded
        """
        self._check_encryption_scope(descriptor.version, descriptor.encryption_scope)
        string_to_sign = self.canonicalizer.build_string_to_sign(descriptor)
        signature = self.signer.sign(string_to_sign)

        params = [("sv", descriptor.version)]
        optional = [
            ("spr", descriptor.protocol),
            ("st", descriptor.window.start),
            ("se", descriptor.window.expiry),
            ("sip", descriptor.ip_range),
            ("si", descriptor.identifier),
            ("sr", descriptor.resource.value),
            ("sp", descriptor.permissions),
            ("ses", descriptor.encryption_scope),
            ("rscc", descriptor.overrides.cache_control),
            ("rscd", descriptor.overrides.content_disposition),
            ("rsce", descriptor.overrides.content_encoding),
            ("rscl", descriptor.overrides.content_language),
            ("rsct", descriptor.overrides.content_type),
        ]
        params.extend((name, value) for name, value in optional if value)
        params.append(("sig", signature))

        logger.info(
            f"Issued SAS for {descriptor.canonical_resource} "
            f"(sr={descriptor.resource.value}, sp={descriptor.permissions}, se={descriptor.window.expiry})"
        )
        return SignedQuery(params=tuple(params))
