"""Tests for the CDN upload signer."""

import hashlib
import hmac
import uuid

import pytest

from chatvault.core.upload_auth import MAX_TTL_SECONDS, UploadAuthSigner
from chatvault.domain.errors import UploadAuthError


def _signer(**kwargs):
    kwargs.setdefault("clock", lambda: 1_700_000_000.0)
    return UploadAuthSigner("secret_key", **kwargs)


def test_signature_is_hmac_sha1_of_token_and_expire():
    signer = _signer()
    expected = hmac.new(b"secret_key", b"abc1700001800", hashlib.sha1).hexdigest()
    assert signer.sign("abc", 1700001800) == expected


def test_default_expiry_is_thirty_minutes():
    params = _signer().get_authentication_parameters()
    assert params["expire"] == 1_700_000_000 + 1800
    uuid.UUID(params["token"])


def test_ttl_is_capped_at_one_hour():
    signer = _signer(ttl_seconds=7200)
    assert signer.ttl_seconds == MAX_TTL_SECONDS
    assert signer.get_authentication_parameters()["expire"] == 1_700_000_000 + 3600


def test_caller_supplied_token_and_expire():
    params = _signer().get_authentication_parameters(token="tok", expire=1700000100)
    assert params["token"] == "tok"
    assert params["expire"] == 1700000100
    assert params["signature"] == _signer().sign("tok", 1700000100)


def test_optional_fields_only_when_configured():
    assert set(_signer().get_authentication_parameters()) == {"token", "expire", "signature"}
    params = _signer(public_key="pub", url_endpoint="https://cdn.test").get_authentication_parameters()
    assert params["publicKey"] == "pub"
    assert params["urlEndpoint"] == "https://cdn.test"


def test_missing_private_key_raises():
    signer = UploadAuthSigner(private_key=None)
    assert not signer.configured
    with pytest.raises(UploadAuthError) as exc_info:
        signer.get_authentication_parameters()
    assert exc_info.value.code == "CDN_NOT_CONFIGURED"
