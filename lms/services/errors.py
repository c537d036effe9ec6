"""
Resultados de negocio esperados del núcleo de inscripciones.

Ninguno representa un defecto: las rutas los traducen a un mensaje y un status HTTP.
Los errores del almacenamiento (pymongo) NO heredan de acá y se propagan como 500.
"""


class LMSError(Exception):
    status_code = 400
    message = "Bad request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class UnauthenticatedError(LMSError):
    status_code = 401
    message = "User not found"


class ForbiddenError(LMSError):
    status_code = 403
    message = "Not allowed for this role"


class CourseNotFoundError(LMSError):
    message = "Course not found"


class AlreadyEnrolledError(LMSError):
    message = "Already enrolled in this course"


class NotEnrolledError(LMSError):
    message = "Not enrolled in this course"


class InvalidProgressError(LMSError):
    message = "Progress must be between 0 and 100"


class EmailInUseError(LMSError):
    message = "Email is already in use"


class InvalidCredentialsError(LMSError):
    status_code = 401
    message = "Invalid credentials"


class UserNotFoundError(LMSError):
    status_code = 404
    message = "User not found"
