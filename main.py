# main.py (raíz)
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from lms.config import settings
from lms.config.database import inicializar_conexiones
from lms.api.middleware.session_middleware import session_middleware
from lms.api.routes.auth_routes import router as auth_router
from lms.api.routes.course_routes import router as course_router
from lms.api.routes.enrollment_routes import router as enrollment_router

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="LMS API", version="1.0.0",
              description="Catálogo de cursos, inscripciones y progreso.")

# Registrar middleware de sesión (lee Bearer / X-Session-Id y resuelve userId en Redis)
app.middleware("http")(session_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def initialize_database() -> None:
    try:
        inicializar_conexiones()
    except PyMongoError:
        logger.exception("Database initialization failed. Check MONGO_URI and MONGO_DATABASE.")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # body mal formado o fuera de rango (ej. progress > 100) → 400, igual que el chequeo del servicio
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


@app.get("/", tags=["Health"])
async def root():
    return {"message": "✅ LMS API is up and running."}


app.include_router(auth_router, prefix="/api")
app.include_router(course_router, prefix="/api")
app.include_router(enrollment_router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.LMS_PORT)
