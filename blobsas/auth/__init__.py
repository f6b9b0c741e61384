"""
Shared key credentials and signing.

Author: blobsas contributors
"""

from blobsas.auth.credentials import SharedKeyCredential
from blobsas.auth.signer import Signer, compute_signature

__all__ = [
    "SharedKeyCredential",
    "Signer",
    "compute_signature",
]
