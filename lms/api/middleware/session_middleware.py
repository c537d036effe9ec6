import logging
from functools import lru_cache

import redis
from fastapi import Request
from fastapi.responses import JSONResponse

from lms.repositories.session_repository import SessionRepository
from lms.utils.security import extract_token

logger = logging.getLogger(__name__)

PUBLIC_PATHS = {"/", "/docs", "/redoc", "/openapi.json", "/api/auth/register", "/api/auth/login"}


@lru_cache(maxsize=1)
def get_session_repository() -> SessionRepository:
	return SessionRepository()


def is_public(method: str, path: str) -> bool:
	if path in PUBLIC_PATHS or path.startswith("/favicon"):
		return True
	# el catálogo se puede consultar sin sesión
	return method == "GET" and (path == "/api/courses" or path.startswith("/api/courses/"))


async def session_middleware(request: Request, call_next):
	"""
	Middleware HTTP que resuelve la sesión antes de procesar la request.
	- Rutas públicas: pasa de largo (si trae token válido igual se resuelve el userId)
	- Resto: requiere token (Authorization: Bearer o X-Session-Id); si no existe o expiró, 401
	"""
	path = request.url.path
	request.state.user_id = None
	public = is_public(request.method, path)

	token = extract_token(request.headers.get("authorization"), request.headers.get("x-session-id"))

	if not token:
		if public:
			return await call_next(request)
		return JSONResponse(status_code=401, content={"detail": "Missing or invalid session token"})

	try:
		user_id = get_session_repository().resolve(token)
	except redis.RedisError as e:
		logger.error(f"Error connecting to Redis in middleware: {e}")
		return JSONResponse(status_code=500, content={"detail": "Session store unavailable"})

	if not user_id and not public:
		return JSONResponse(status_code=401, content={"detail": "Session invalid or expired"})

	request.state.user_id = user_id
	request.state.session_token = token
	return await call_next(request)
