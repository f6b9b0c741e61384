"""
blobsas: Shared Access Signature URLs for blob storage.

Signs container and blob grants with a shared key credential without
handing out the account key.
"""

__version__ = "0.1.0"

from .auth import SharedKeyCredential, Signer, compute_signature
from .exceptions import ContainerNotFoundError, InvalidArgumentError, InvalidCredentialError, SasError
from .generator import SasUrlGenerator
from .sas import BlobSasPermissions, ContainerSasPermissions, SasUrlMap

__all__ = [
    "__version__",
    "SharedKeyCredential",
    "Signer",
    "compute_signature",
    "ContainerNotFoundError",
    "InvalidArgumentError",
    "InvalidCredentialError",
    "SasError",
    "SasUrlGenerator",
    "BlobSasPermissions",
    "ContainerSasPermissions",
    "SasUrlMap",
]
