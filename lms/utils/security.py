from passlib.context import CryptContext
from passlib.exc import UnknownHashError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def check_password(plain_password: str, stored_hash: str) -> tuple[bool, str | None]:
    """
    (válida, hash nuevo). El hash nuevo sólo viene cuando el guardado usa
    parámetros viejos y conviene reemplazarlo en el usuario.
    """
    if not stored_hash:
        return False, None
    try:
        return pwd_context.verify_and_update(plain_password, stored_hash)
    except (UnknownHashError, ValueError):
        return False, None


def extract_token(authorization: str | None, session_header: str | None) -> str | None:
    """Token de sesión desde `Authorization: Bearer ...` o `X-Session-Id`."""
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        return token or None
    if session_header and session_header.strip():
        return session_header.strip()
    return None
