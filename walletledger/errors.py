"""Error hierarchy for the storage and service layers, with classification helpers."""

from __future__ import annotations


class _LedgerError(Exception):
    """Base error carrying a dotted kind name, a message and an optional cause."""

    kind = "error"

    def __init__(self, message: str = "", *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        text = self.kind
        if self.message:
            text += f": {self.message}"
        if self.__cause__ is not None:
            text += f", cause: {self.__cause__}"
        return text


# Storage layer -----------------------------------------------------------


class StorageError(_LedgerError):
    """Any error raised by the storage layer."""

    kind = "storage"


class ExternalError(StorageError):
    """Storage error caused by the caller's request rather than the store itself."""

    kind = "storage.external"


class NotFoundError(ExternalError):
    """The requested record does not exist."""

    kind = "storage.not_found"


class InternalError(StorageError):
    """Storage error caused by a failure of the store itself."""

    kind = "storage.internal"


class StorageInsertError(InternalError):
    kind = "storage.failed_to_insert"


class StorageUpdateError(InternalError):
    kind = "storage.failed_to_update"


class StorageGetError(InternalError):
    kind = "storage.failed_to_get"


class StorageMarshalError(InternalError):
    kind = "storage.failed_to_marshal"


class StorageUnmarshalError(InternalError):
    kind = "storage.failed_to_unmarshal"


class StorageCloseRowsError(InternalError):
    kind = "storage.failed_to_close_rows"


class UnhandledError(InternalError):
    kind = "storage.unhandled"


# Service layer -----------------------------------------------------------


class ServiceError(_LedgerError):
    """Any error raised by the domain service layer."""

    kind = "domain"


class ClientError(ServiceError):
    """The client asked for something invalid."""

    kind = "domain.client"


class InvalidInputError(ClientError):
    kind = "domain.invalid"


class ServerError(ServiceError):
    """The service failed for internal reasons."""

    kind = "domain.server"


class GenerateError(ServerError):
    kind = "domain.failed_to_generate"


class GetError(ServerError):
    kind = "domain.failed_to_get"


class InsertError(ServerError):
    kind = "domain.failed_to_insert"


class UpdateError(ServerError):
    kind = "domain.failed_to_update token"


# Classification ----------------------------------------------------------


def _cause_of(err: object) -> object:
    return getattr(err, "__cause__", None)


def is_internal_error(err: object) -> bool:
    """Return True if ``err`` is an internal storage error."""
    return isinstance(err, InternalError)


def is_external_error(err: object) -> bool:
    """Return True if ``err`` is an external storage error."""
    return isinstance(err, ExternalError)


def is_not_found(err: object) -> bool:
    """Return True if ``err`` or its direct cause is a not-found error."""
    return isinstance(err, NotFoundError) or isinstance(_cause_of(err), NotFoundError)


def is_client_error(err: object) -> bool:
    """Return True if ``err`` is a client error or wraps an external storage error."""
    return isinstance(err, ClientError) or is_external_error(_cause_of(err))


def is_server_error(err: object) -> bool:
    """Return True if ``err`` is a server error wrapping an internal storage error."""
    return isinstance(err, ServerError) and is_internal_error(_cause_of(err))