"""
Tests for HMAC-SHA256 signing.
"""

import base64
import hashlib
import hmac

import pytest

from blobsas.auth.credentials import SharedKeyCredential
from blobsas.auth import signer as signer_module
from blobsas.auth.signer import Signer, compute_signature
from blobsas.exceptions import InvalidArgumentError, InvalidCredentialError

KEY_BYTES = b"test-account-key-12345678901234567890"


@pytest.fixture
def account_key():
    """Generate a test account key."""
    return base64.b64encode(KEY_BYTES).decode()


def reference_signature(string_to_sign: str) -> str:
    return base64.b64encode(
        hmac.new(KEY_BYTES, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    ).decode()


class TestComputeSignature:
    """Test compute_signature()."""

    def test_matches_reference_hmac(self, account_key):
        string_to_sign = "rl\n2025-06-04T10:00:00Z\n2025-06-04T10:15:00Z\n/blob/testaccount/uploads"

        assert compute_signature(string_to_sign, account_key) == reference_signature(string_to_sign)

    def test_deterministic(self, account_key):
        first = compute_signature("same input", account_key)
        second = compute_signature("same input", account_key)

        assert first == second

    def test_signs_utf8(self, account_key):
        string_to_sign = "r\n/blob/testaccount/uploads/café ñ.pdf"

        assert compute_signature(string_to_sign, account_key) == reference_signature(string_to_sign)

    def test_accepts_bytes_key(self, account_key):
        assert compute_signature("abc", account_key.encode()) == compute_signature("abc", account_key)

    def test_different_inputs_differ(self, account_key):
        assert compute_signature("r", account_key) != compute_signature("w", account_key)

    def test_decoded_key_buffer_zeroed(self, account_key, monkeypatch):
        buffers = []
        decode = signer_module._decode_key

        def capture(key):
            buffer = decode(key)
            buffers.append(buffer)
            return buffer

        monkeypatch.setattr(signer_module, "_decode_key", capture)

        assert compute_signature("abc", account_key) == reference_signature("abc")
        assert len(buffers) == 1
        assert set(buffers[0]) == {0}

    def test_invalid_base64_key(self):
        with pytest.raises(InvalidCredentialError) as exc_info:
            compute_signature("abc", "not*base64!")

        assert exc_info.value.error_code == "InvalidCredential"
        assert "not*base64!" not in str(exc_info.value)
        assert exc_info.value.__cause__ is None


class TestSigner:
    """Test Signer bound to a credential."""

    def test_sign_matches_reference(self, account_key):
        signer = Signer(SharedKeyCredential("testaccount", account_key))

        assert signer.sign("payload") == reference_signature("payload")
        assert signer.account_name == "testaccount"

    def test_invalid_key_surfaces_at_signing(self):
        credential = SharedKeyCredential("testaccount", "%%%not-base64%%%")
        signer = Signer(credential)

        with pytest.raises(InvalidCredentialError):
            signer.sign("payload")

    def test_closed_credential_cannot_sign(self, account_key):
        credential = SharedKeyCredential("testaccount", account_key)
        signer = Signer(credential)
        credential.close()

        with pytest.raises(InvalidCredentialError):
            signer.sign("payload")

    def test_signs_empty_string(self, account_key):
        signer = Signer(SharedKeyCredential("testaccount", account_key))

        assert signer.sign("") == reference_signature("")

    def test_non_string_rejected(self, account_key):
        signer = Signer(SharedKeyCredential("testaccount", account_key))

        with pytest.raises(InvalidArgumentError) as exc_info:
            signer.sign(None)

        assert exc_info.value.field == "string_to_sign"

    def test_signing_leaves_credential_key_intact(self, account_key):
        credential = SharedKeyCredential("testaccount", account_key)
        signer = Signer(credential)

        signer.sign("one")

        assert bytes(credential.key_material()) == account_key.encode()
        assert signer.sign("two") == reference_signature("two")
