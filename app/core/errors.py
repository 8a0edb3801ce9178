"""Failure taxonomy for a chat turn.

Every failure that ends a turn is raised as a ``TurnError``. The orchestrator turns it into a
single ``error`` stream event carrying ``user_message``; everything else about the failure stays in
the server log.
"""

from enum import Enum


class TurnErrorKind(str, Enum):
    """Classification of a failed turn."""

    CLIENT = "client"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    PERSISTENCE = "persistence"
    GENERATION = "generation"


_DEFAULT_STATUS: dict[TurnErrorKind, int] = {
    TurnErrorKind.CLIENT: 400,
    TurnErrorKind.AUTHENTICATION: 401,
    TurnErrorKind.AUTHORIZATION: 403,
    TurnErrorKind.PERSISTENCE: 500,
    TurnErrorKind.GENERATION: 502,
}


class TurnError(Exception):
    """Raised when a turn cannot complete."""

    def __init__(
        self,
        kind: TurnErrorKind,
        user_message: str,
        status_code: int | None = None,
    ):
        super().__init__(user_message)
        self.kind = kind
        self.user_message = user_message
        self.status_code = status_code or _DEFAULT_STATUS[kind]

    @classmethod
    def client(cls, user_message: str) -> "TurnError":
        return cls(TurnErrorKind.CLIENT, user_message)

    @classmethod
    def unauthenticated(cls) -> "TurnError":
        return cls(TurnErrorKind.AUTHENTICATION, "Não autenticado.")

    @classmethod
    def forbidden(cls, user_message: str, status_code: int = 403) -> "TurnError":
        return cls(TurnErrorKind.AUTHORIZATION, user_message, status_code)

    @classmethod
    def persistence(cls, user_message: str) -> "TurnError":
        return cls(TurnErrorKind.PERSISTENCE, user_message)

    @classmethod
    def generation(cls, user_message: str) -> "TurnError":
        return cls(TurnErrorKind.GENERATION, user_message)

    def __repr__(self) -> str:
        return f"TurnError(kind={self.kind.value}, status={self.status_code}, message={self.user_message!r})"
