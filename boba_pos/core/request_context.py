from __future__ import annotations

from contextvars import ContextVar


_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
_MANAGER_EMAIL_CTX: ContextVar[str | None] = ContextVar("manager_email", default=None)


def set_request_context(*, request_id: str | None = None, manager_email: str | None = None) -> None:
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if manager_email is not None:
        _MANAGER_EMAIL_CTX.set(manager_email)


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


def get_manager_email() -> str | None:
    return _MANAGER_EMAIL_CTX.get()


def clear_request_context() -> None:
    _REQUEST_ID_CTX.set(None)
    _MANAGER_EMAIL_CTX.set(None)
