"""Password hashing utilities.

bcrypt with a configurable work factor (Settings.bcrypt_rounds). The
salt and cost are embedded in the hash itself ("$2b$12$..."), so a hash
made with an older cost still verifies; needs_rehash() tells the login
flow when to re-hash with the current cost.
"""

import bcrypt

DEFAULT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes.
_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with a fresh salt at the given cost."""
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against its bcrypt hash.

    A malformed stored hash verifies as False rather than raising.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def hash_rounds(password_hash: str) -> int:
    """The cost factor embedded in a bcrypt hash, or 0 if unreadable."""
    try:
        return int(password_hash.split("$")[2])
    except (IndexError, ValueError):
        return 0


def needs_rehash(password_hash: str, rounds: int) -> bool:
    return hash_rounds(password_hash) != rounds
