"""
One-time login material for newly provisioned accounts.

The access code is a lookup convenience, not a secret. The temporary password
is a credential: drawn from `secrets`, hashed immediately, and only ever held
in memory long enough to hand to the notification dispatcher.
"""
import secrets
import string

from werkzeug.security import generate_password_hash, check_password_hash

ACCESS_CODE_LENGTH = 8
ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits   # 36^8 ≈ 2.8e12

TEMP_PASSWORD_LENGTH = 14
# No look-alike characters (0/O, 1/l/I)
_LETTERS = 'ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz'
_DIGITS = '23456789'
_SYMBOLS = '!@#$%*?'
TEMP_PASSWORD_ALPHABET = _LETTERS + _DIGITS + _SYMBOLS


def generate_access_code(length=ACCESS_CODE_LENGTH):
    """8-character uppercase alphanumeric portal access code."""
    return ''.join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(length))


def generate_temp_password(length=TEMP_PASSWORD_LENGTH):
    """Random password with at least one letter, digit and symbol."""
    if length < 12:
        raise ValueError('Temporary passwords must be at least 12 characters')
    while True:
        password = ''.join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))
        if (any(c in _LETTERS for c in password)
                and any(c in _DIGITS for c in password)
                and any(c in _SYMBOLS for c in password)):
            return password


def hash_password(password):
    """Slow salted hash (werkzeug's default scrypt) for storage on the User row."""
    return generate_password_hash(password)


def verify_password(password_hash, password):
    return check_password_hash(password_hash, password)
