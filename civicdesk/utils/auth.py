"""
Authentication Utilities
Password hashing for locally registered accounts
Source: https://cheatsheetseries.owasp.org/cheatsheets/Password_Storage_Cheat_Sheet.html
"""

import bcrypt

# bcrypt only looks at the first 72 bytes; recent releases reject longer input
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its bcrypt hash.

    Args:
        plain_password: Plain text password
        hashed_password: Bcrypt hashed password (string format)

    Returns:
        True if password matches, False otherwise (including a corrupt hash)
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt with a fresh salt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hashed password (string format)
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(_encode(password), salt)
    return hashed.decode("utf-8")
