"""
goskel keys - RSA key pair for the generated service's token signing

The private key is written as a PKCS#1 PEM block and the public key as a
SubjectPublicKeyInfo PEM block, at the paths ``ProjectLayout`` names. The
same layout feeds the generated env files, so the two never disagree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from goskel.errors import KeyGenerationError
from goskel.materializer import Materializer
from goskel.models import ProjectLayout

logger = logging.getLogger(__name__)

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


@dataclass
class KeyPair:
    """PEM-encoded key material."""

    private_pem: bytes
    public_pem: bytes


def validate_private_key(key: rsa.RSAPrivateKey, key_size: int = KEY_SIZE) -> None:
    """
    Check the internal consistency of an RSA private key.

    Raises:
        KeyGenerationError: the key is the wrong size or its numbers do not agree
    """
    if key.key_size != key_size:
        raise KeyGenerationError(f"expected a {key_size}-bit key, got {key.key_size} bits")

    numbers = key.private_numbers()
    pub = numbers.public_numbers
    p, q, d = numbers.p, numbers.q, numbers.d

    if p * q != pub.n:
        raise KeyGenerationError("invalid key: modulus is not the product of its primes")
    for prime in (p, q):
        if (d * pub.e) % (prime - 1) != 1:
            raise KeyGenerationError("invalid key: private exponent does not invert the public exponent")


def encode_key_pair(key: rsa.RSAPrivateKey) -> KeyPair:
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyPair(private_pem=private_pem, public_pem=public_pem)


def generate_key_pair(materializer: Materializer, layout: ProjectLayout) -> KeyPair:
    """Generate, validate, encode and write a fresh key pair."""
    materializer.ensure_dir(layout.keys_dir)

    try:
        key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=KEY_SIZE)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyGenerationError(f"error generating RSA key: {e}") from e

    validate_private_key(key)
    pair = encode_key_pair(key)

    materializer.write_file(layout.private_key, pair.private_pem, mode=0o600)
    materializer.write_file(layout.public_key, pair.public_pem)
    logger.info("generated %d-bit RSA key pair in %s", KEY_SIZE, layout.keys_dir)

    return pair
