"""
Shared key credential for signing SAS tokens.

The account key is held as a mutable buffer so it can be wiped once the
credential is no longer needed. Use the credential as a context manager to
bound the lifetime of the key material:

    with SharedKeyCredential("myaccount", key) as credential:
        generator = SasUrlGenerator(credential)
        ...

Author: blobsas contributors
"""

import logging
from typing import Optional, Union

from blobsas.exceptions import InvalidArgumentError, InvalidCredentialError, require_text

logger = logging.getLogger(__name__)


class SharedKeyCredential:
    """Account name and base64-encoded account key."""

    __slots__ = ("_account_name", "_account_key")

    def __init__(self, account_name: str, account_key: Union[str, bytes, bytearray]):
        """
        Initialize the credential.

        Args:
            account_name: Storage account name
            account_key: Base64-encoded account key, as text or bytes

        Raises:
            InvalidArgumentError: If the account name or key is blank, or the
                                  key is neither str nor bytes
        """
        self._account_name = require_text("account_name", account_name)
        if isinstance(account_key, str):
            key_text = bytearray(account_key.strip().encode("ascii", "replace"))
        elif isinstance(account_key, (bytes, bytearray)):
            key_text = bytearray(account_key.strip())
        elif account_key is None:
            key_text = bytearray()
        else:
            raise InvalidArgumentError(
                "account_key", f"'account_key' must be str or bytes, got {type(account_key).__name__}"
            )
        if not key_text:
            raise InvalidArgumentError("account_key", "'account_key' cannot be empty")
        self._account_key: Optional[bytearray] = key_text

    @property
    def account_name(self) -> str:
        return self._account_name

    @property
    def closed(self) -> bool:
        return self._account_key is None

    def key_material(self) -> bytearray:
        """
        Return the base64 key text held by this credential.

        The returned buffer is owned by the credential; callers must not keep
        a reference past the current call.

        Raises:
            InvalidCredentialError: If the credential has been closed
        """
        if self._account_key is None:
            raise InvalidCredentialError(
                f"Credential for account '{self._account_name}' has been closed"
            )
        return self._account_key

    def close(self) -> None:
        """Zero and release the key material."""
        if self._account_key is None:
            return
        for i in range(len(self._account_key)):
            self._account_key[i] = 0
        self._account_key = None
        logger.debug(f"Cleared key material for account {self._account_name}")

    def __enter__(self) -> "SharedKeyCredential":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "***"
        return f"SharedKeyCredential(account_name={self._account_name!r}, account_key={state})"

    __str__ = __repr__
