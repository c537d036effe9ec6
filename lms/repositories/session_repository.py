import uuid
from typing import Optional

import redis

from lms.config import settings
from lms.config.database import get_redis_client


class SessionRepository:
    """
    Sesiones en Redis: clave `session:{token}` → userId, con TTL.
    """

    def __init__(self, client: Optional[redis.Redis] = None, ttl_seconds: Optional[int] = None):
        self.client = client if client is not None else get_redis_client()
        self.ttl_seconds = ttl_seconds or settings.SESSION_TTL_SECONDS

    @staticmethod
    def _key(token: str) -> str:
        return f"session:{token}"

    def create(self, user_id: str) -> str:
        token = uuid.uuid4().hex
        self.client.set(self._key(token), user_id, ex=self.ttl_seconds)
        return token

    def resolve(self, token: str) -> Optional[str]:
        user_id = self.client.get(self._key(token))
        if isinstance(user_id, bytes):
            user_id = user_id.decode("utf-8")
        return user_id or None

    def delete(self, token: str) -> None:
        self.client.delete(self._key(token))
