from __future__ import annotations

from translate_app.notifications.models import Notification, NotificationLevel
from translate_core.domain.errors import TranslateError


def service_unavailable() -> Notification:
    return Notification(
        "The translation service couldn't be reached.",
        NotificationLevel.ERROR,
    )


def client_error() -> Notification:
    return Notification(
        "The translation request was rejected.",
        NotificationLevel.WARNING,
    )


def server_error() -> Notification:
    return Notification(
        "The translation service failed. Try again later.",
        NotificationLevel.ERROR,
    )


def unknown_error() -> Notification:
    return Notification("An unknown error occurred.", NotificationLevel.ERROR)


def translate_error(error: TranslateError) -> Notification:
    if error is TranslateError.SERVICE_UNAVAILABLE:
        return service_unavailable()
    if error is TranslateError.CLIENT_ERROR:
        return client_error()
    if error is TranslateError.SERVER_ERROR:
        return server_error()
    return unknown_error()
