"""SAS token construction: permissions, canonicalization and signed queries."""

from blobsas.sas.builder import DEFAULT_API_VERSION, SasBuilder, normalize_permissions
from blobsas.sas.canonicalizer import SasCanonicalizer, build_string_to_sign
from blobsas.sas.models import (
    BlobScope,
    ContainerScope,
    ResponseHeaderOverrides,
    SasDescriptor,
    SasResource,
    SasUrlMap,
    SignedQuery,
    ValidityWindow,
    format_sas_time,
)
from blobsas.sas.permissions import (
    BlobSasPermissions,
    ContainerSasPermissions,
    PermissionSet,
    SasPermission,
)

__all__ = [
    "DEFAULT_API_VERSION",
    "SasBuilder",
    "normalize_permissions",
    "SasCanonicalizer",
    "build_string_to_sign",
    "BlobScope",
    "ContainerScope",
    "ResponseHeaderOverrides",
    "SasDescriptor",
    "SasResource",
    "SasUrlMap",
    "SignedQuery",
    "ValidityWindow",
    "format_sas_time",
    "BlobSasPermissions",
    "ContainerSasPermissions",
    "PermissionSet",
    "SasPermission",
]
