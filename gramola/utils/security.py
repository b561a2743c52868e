import hashlib
import hmac
import re
from argon2 import PasswordHasher, exceptions as argon_exc

password_hasher = PasswordHasher()

# Anciens comptes: SHA-256 hexadécimal, sans sel
_LEGACY_SHA256 = re.compile(r"^[0-9a-f]{64}$")


def hash_password(password: str) -> str:
    return password_hasher.hash(password)


def legacy_sha256(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def is_legacy_hash(password_hash: str | None) -> bool:
    return bool(password_hash and _LEGACY_SHA256.match(password_hash))


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    if is_legacy_hash(password_hash):
        return hmac.compare_digest(legacy_sha256(password), password_hash)
    try:
        return password_hasher.verify(password_hash, password)
    except argon_exc.VerifyMismatchError:
        return False
    except Exception:
        return False


def needs_rehash(password_hash: str) -> bool:
    if is_legacy_hash(password_hash):
        return True
    try:
        return password_hasher.check_needs_rehash(password_hash)
    except Exception:
        return False
