"""Unit tests for sealed-box secret encryption."""

from __future__ import annotations

import base64

import pytest
from nacl import public

from github_env_manager.crypto import EnvironmentPublicKey, seal_secret


def _open(keypair: public.PrivateKey, encrypted_value: str) -> str:
    return public.SealedBox(keypair).decrypt(base64.b64decode(encrypted_value)).decode("utf-8")


@pytest.mark.parametrize("value", ["s3cr3t", "", "päss wörd ✓", "x" * 4096])
def test_sealed_value_opens_with_matching_private_key(
    keypair: public.PrivateKey, environment_public_key: EnvironmentPublicKey, value: str
) -> None:
    sealed = seal_secret(value, environment_public_key)

    assert sealed.key_id == environment_public_key.key_id
    assert _open(keypair, sealed.encrypted_value) == value


def test_sealing_twice_gives_different_ciphertexts(
    keypair: public.PrivateKey, environment_public_key: EnvironmentPublicKey
) -> None:
    first = seal_secret("same", environment_public_key)
    second = seal_secret("same", environment_public_key)

    assert first.encrypted_value != second.encrypted_value
    assert _open(keypair, first.encrypted_value) == "same"
    assert _open(keypair, second.encrypted_value) == "same"


def test_sealed_value_does_not_open_with_another_key(
    environment_public_key: EnvironmentPublicKey,
) -> None:
    from nacl.exceptions import CryptoError

    sealed = seal_secret("value", environment_public_key)

    with pytest.raises(CryptoError):
        _open(public.PrivateKey.generate(), sealed.encrypted_value)


def test_invalid_base64_key_is_rejected() -> None:
    with pytest.raises(ValueError, match="not valid base64"):
        seal_secret("value", EnvironmentPublicKey(key_id="k", key="not base64!!"))


def test_wrong_length_key_is_rejected() -> None:
    short_key = base64.b64encode(b"too-short").decode("utf-8")

    with pytest.raises(ValueError, match="not a valid sealed-box key"):
        seal_secret("value", EnvironmentPublicKey(key_id="k", key=short_key))


def test_repr_does_not_expose_ciphertext(environment_public_key: EnvironmentPublicKey) -> None:
    sealed = seal_secret("value", environment_public_key)

    assert sealed.encrypted_value not in repr(sealed)
