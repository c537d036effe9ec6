import logging
from threading import Lock

import redis
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from lms.config import settings

logger = logging.getLogger(__name__)

_clients_lock = Lock()
_mongo_client: MongoClient | None = None
_redis_client: redis.Redis | None = None


# ==================================
# 🟢 MongoDB
# ==================================
def get_mongo_client() -> MongoClient:
    """Cliente único por proceso (pymongo ya maneja su propio pool)."""
    global _mongo_client

    if _mongo_client is None:
        with _clients_lock:
            if _mongo_client is None:
                _mongo_client = MongoClient(settings.MONGO_URI, serverSelectionTimeoutMS=5000)
    return _mongo_client


def get_mongo_db() -> Database:
    return get_mongo_client()[settings.MONGO_DATABASE]


def ensure_indexes(db: Database | None = None) -> None:
    """
    Crea los índices de los que depende la integridad de los datos.
    El índice único (userId, courseId) es la garantía real contra inscripciones duplicadas.
    """
    db = db if db is not None else get_mongo_db()
    db["enrollments"].create_index(
        [("userId", ASCENDING), ("courseId", ASCENDING)],
        unique=True,
        name="user_course_idx",
    )
    db["enrollments"].create_index("userId")
    db["users"].create_index("email", unique=True)


# ==================================
# ⚡ Redis
# ==================================
def get_redis_client() -> redis.Redis:
    global _redis_client

    if _redis_client is None:
        with _clients_lock:
            if _redis_client is None:
                _redis_client = redis.from_url(settings.REDIS_URI)
    return _redis_client


def inicializar_conexiones() -> None:
    """Prueba las conexiones y prepara los índices al arrancar la API."""
    db = get_mongo_db()
    db.client.admin.command("ping")
    logger.info(f"🟢 Mongo conectado a la base: {db.name}")
    ensure_indexes(db)

    try:
        get_redis_client().ping()
        logger.info("⚡ Redis conectado.")
    except redis.RedisError as e:
        # sin Redis no hay sesiones, pero el catálogo público sigue funcionando
        logger.error(f"❌ Error al conectar a Redis: {e}")
