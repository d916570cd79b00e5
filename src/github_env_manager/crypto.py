"""Secret sealing for the GitHub Actions secrets API.

GitHub only accepts secret values encrypted with libsodium's anonymous sealed box
(`crypto_box_seal`) against the environment's current public key. The ciphertext is sent
together with the `key_id` of that key; GitHub rejects mismatched pairs, so nothing is
validated here beyond the key itself being a well-formed Curve25519 public key.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from nacl import exceptions as nacl_exceptions
from nacl import public


@dataclass(frozen=True, slots=True)
class EnvironmentPublicKey:
    """Environment-scoped public key used to seal secret values."""

    key_id: str
    key: str


@dataclass(frozen=True, slots=True)
class SealedSecret:
    """A sealed secret value ready to be submitted to GitHub."""

    key_id: str
    encrypted_value: str

    def __repr__(self) -> str:
        return f"SealedSecret(key_id={self.key_id!r}, encrypted_value=<{len(self.encrypted_value)} chars>)"


def seal_secret(value: str, public_key: EnvironmentPublicKey) -> SealedSecret:
    """Encrypt `value` to `public_key` with a sealed box.

    Every call uses a fresh ephemeral keypair, so the ciphertext differs between calls
    even for identical inputs.

    Raises:
        ValueError: If the public key is not valid base64 or not a 32-byte key.
    """

    try:
        key_bytes = base64.b64decode(public_key.key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Public key {public_key.key_id!r} is not valid base64") from e

    try:
        recipient = public.PublicKey(key_bytes)
    except (nacl_exceptions.ValueError, nacl_exceptions.TypeError) as e:
        raise ValueError(f"Public key {public_key.key_id!r} is not a valid sealed-box key") from e

    encrypted = public.SealedBox(recipient).encrypt(value.encode("utf-8"))
    return SealedSecret(
        key_id=public_key.key_id,
        encrypted_value=base64.b64encode(encrypted).decode("utf-8"),
    )
