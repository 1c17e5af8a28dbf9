from typing import Optional


class PBError(Exception):
    """Error hablando con PocketBase (red, HTTP no-2xx, respuesta inválida)."""
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(PBError):
    pass


class AuthError(PBError):
    pass
