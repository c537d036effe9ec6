from fastapi import APIRouter, Depends, HTTPException, Request

from lms.api.dependencies import get_auth_service
from lms.models.enrollment_model import MessageResponse
from lms.models.user_model import LoginIn, LoginOut, UserIn, UserOut
from lms.services.auth_service import AuthService
from lms.services.errors import LMSError

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=UserOut)
def register(payload: UserIn, auth: AuthService = Depends(get_auth_service)):
    try:
        return auth.register(payload.name, payload.email, payload.password, payload.role)
    except LMSError as err:
        raise HTTPException(status_code=err.status_code, detail=err.message) from err


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, auth: AuthService = Depends(get_auth_service)):
    """
    Login con credenciales: { "email": "..", "password": ".." }
    Devuelve un token de sesión guardado en Redis.
    """
    try:
        return auth.login(payload.email, payload.password)
    except LMSError as err:
        raise HTTPException(status_code=err.status_code, detail=err.message) from err


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, auth: AuthService = Depends(get_auth_service)):
    token = getattr(request.state, "session_token", None)
    if token:
        auth.logout(token)
    return MessageResponse(message="Logged out")
