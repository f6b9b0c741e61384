"""Storage account capabilities consumed by SAS issuance."""

from blobsas.storage.endpoint import BlobEndpointResolver, DEFAULT_ENDPOINT_SUFFIX, encode_blob_path
from blobsas.storage.interface import StorageAccountClient
from blobsas.storage.memory import ContainerNameValidator, InMemoryStorageAccount

__all__ = [
    "BlobEndpointResolver",
    "DEFAULT_ENDPOINT_SUFFIX",
    "encode_blob_path",
    "StorageAccountClient",
    "ContainerNameValidator",
    "InMemoryStorageAccount",
]
