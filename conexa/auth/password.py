"""Hash and verify passwords with bcrypt."""
import bcrypt


def hash_password(plain: str) -> str:
    """Hash a plain password for storage. Bcrypt only uses the first 72 bytes."""
    pw_bytes = plain.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt()).decode("ascii")


def verify_password(plain: str, hashed: str) -> bool:
    pw_bytes = plain.encode("utf-8")[:72]
    return bcrypt.checkpw(pw_bytes, hashed.encode("ascii"))
