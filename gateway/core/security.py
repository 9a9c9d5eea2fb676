import bcrypt

from .config import settings

MAX_BCRYPT_BYTES = 72  # bcrypt limiti


def hash_secret(secret: str) -> str:
    p = secret.encode("utf-8")[:MAX_BCRYPT_BYTES]
    return bcrypt.hashpw(p, bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode("utf-8")


def verify_secret(plain: str, hashed: str) -> bool:
    p = plain.encode("utf-8")[:MAX_BCRYPT_BYTES]
    try:
        return bcrypt.checkpw(p, hashed.encode("utf-8"))
    except ValueError:
        # Bozuk hash (elle girilmiş kayıt vb.)
        return False
