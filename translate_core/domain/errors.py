from __future__ import annotations

from enum import Enum


class TranslateError(Enum):
    SERVICE_UNAVAILABLE = "service_unavailable"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    UNKNOWN_ERROR = "unknown_error"


class TranslateException(Exception):
    def __init__(self, error: TranslateError, message: str | None = None) -> None:
        super().__init__(message or error.value)
        self.error = error
        self.message = message or error.value

    def __str__(self) -> str:
        return self.message


class StorageError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class UnknownLanguageError(KeyError):
    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code

    def __str__(self) -> str:
        return f"Unknown language code: {self.code!r}"
