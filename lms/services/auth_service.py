import logging
from typing import Any, Dict, Optional

from pymongo.database import Database

from lms.repositories.session_repository import SessionRepository
from lms.repositories.user_repository import UserRepository
from lms.services.errors import InvalidCredentialsError
from lms.utils.permissions import Caller, Role
from lms.utils.security import check_password, hash_password

logger = logging.getLogger(__name__)


class AuthService:
    """Emisión de sesiones y resolución de identidad (userId, rol)."""

    def __init__(self, db: Optional[Database] = None, sessions: Optional[SessionRepository] = None):
        self.users = UserRepository(db)
        self.sessions = sessions if sessions is not None else SessionRepository()

    def register(self, name: str, email: str, password: str, role: Role) -> Dict[str, Any]:
        user = self.users.create_user(name, email, hash_password(password), role.value)
        logger.info(f"[auth] usuario registrado {user['id']} ({user['email']}, {role.value})")
        user.pop("passwordHash", None)
        return user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.users.find_by_email(email)
        valid, new_hash = check_password(password, user.get("passwordHash", "")) if user else (False, None)
        if not valid:
            logger.warning(f"[auth] login fallido para {email}")
            raise InvalidCredentialsError()
        if new_hash:
            self.users.update(user["id"], {"passwordHash": new_hash})
            logger.info(f"[auth] hash de contraseña actualizado para {user['id']}")

        token = self.sessions.create(user["id"])
        return {
            "token": token,
            "id": user["id"],
            "name": user.get("name", ""),
            "email": user["email"],
            "role": user["role"],
            "expires_in": self.sessions.ttl_seconds,
        }

    def logout(self, token: str) -> None:
        self.sessions.delete(token)

    def resolve_caller(self, user_id: Optional[str]) -> Optional[Caller]:
        """userId de la sesión → Caller; None si el usuario ya no existe o su rol es desconocido."""
        if not user_id:
            return None
        user = self.users.find_by_id(user_id)
        if not user:
            return None
        try:
            role = Role(user.get("role"))
        except ValueError:
            logger.warning(f"[auth] usuario {user_id} con rol desconocido {user.get('role')!r}")
            return None
        return Caller(user["id"], role)
