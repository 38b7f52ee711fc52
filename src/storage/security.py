"""Password hashing and password-reset fingerprints for user accounts."""

from __future__ import annotations

import base64
import hashlib
import hmac
import os


PASSWORD_SCHEME = "pbkdf2_sha256"
PASSWORD_ROUNDS = 260_000
_SALT_BYTES = 16


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def hash_password(password: str, *, rounds: int = PASSWORD_ROUNDS) -> str:
    """Return ``scheme$rounds$salt$digest`` for ``password`` with a fresh salt."""

    salt = os.urandom(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return f"{PASSWORD_SCHEME}${rounds}${_b64(salt)}${_b64(digest)}"


def verify_password(password: str, encoded_hash: str) -> bool:
    parts = (encoded_hash or "").split("$", 3)
    if len(parts) != 4 or parts[0] != PASSWORD_SCHEME:
        return False
    try:
        rounds = int(parts[1])
        salt = base64.b64decode(parts[2].encode("ascii"), validate=True)
        expected = base64.b64decode(parts[3].encode("ascii"), validate=True)
    except ValueError:
        return False
    if rounds <= 0:
        return False

    observed = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(observed, expected)


def password_fingerprint(encoded_hash: str) -> str:
    """Short digest of the stored hash; changes whenever the password does.

    Reset tokens carry it so a token stops working once it has been used.
    """

    return hashlib.sha256(encoded_hash.encode("utf-8")).hexdigest()[:16]
