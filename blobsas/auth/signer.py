"""
HMAC-SHA256 signing for SAS tokens.

Signature = Base64(HMAC-SHA256(Base64Decode(AccountKey), UTF8(StringToSign)))

Reference: https://learn.microsoft.com/en-us/rest/api/storageservices/create-service-sas

Author: blobsas contributors
"""

import base64
import binascii
import hashlib
import hmac
from typing import Union

from blobsas.auth.credentials import SharedKeyCredential
from blobsas.exceptions import InvalidArgumentError, InvalidCredentialError

KeyLike = Union[str, bytes, bytearray]


def _decode_key(account_key: KeyLike) -> bytearray:
    # Only the returned buffer can be wiped; the bytes from b64decode cannot.
    if isinstance(account_key, str):
        account_key = account_key.encode("ascii", "replace")
    try:
        return bytearray(base64.b64decode(account_key, validate=True))
    except (binascii.Error, ValueError):
        # from None: the chained error would echo the key
        raise InvalidCredentialError() from None


def compute_signature(string_to_sign: str, account_key: KeyLike) -> str:
    """
    Compute the base64 HMAC-SHA256 signature of a string-to-sign.

    Args:
        string_to_sign: Canonical string to sign
        account_key: Base64-encoded account key

    Returns:
        Base64-encoded signature

    Raises:
        InvalidCredentialError: If the key is not valid base64
    """
    key_bytes = _decode_key(account_key)
    try:
        digest = hmac.new(key_bytes, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    finally:
        for i in range(len(key_bytes)):
            key_bytes[i] = 0
    return base64.b64encode(digest).decode("utf-8")


class Signer:
    """Signs canonical strings with a shared key credential."""

    def __init__(self, credential: SharedKeyCredential):
        self._credential = credential

    @property
    def account_name(self) -> str:
        return self._credential.account_name

    def sign(self, string_to_sign: str) -> str:
        """Return the base64 signature of string_to_sign."""
        if not isinstance(string_to_sign, str):
            raise InvalidArgumentError("string_to_sign", "'string_to_sign' must be a string")
        return compute_signature(string_to_sign, self._credential.key_material())
