import pytest

from walletledger.errors import (
    ClientError,
    GenerateError,
    GetError,
    InsertError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    ServerError,
    StorageGetError,
    StorageInsertError,
    StorageUpdateError,
    UnhandledError,
    UpdateError,
    is_client_error,
    is_external_error,
    is_internal_error,
    is_not_found,
    is_server_error,
)


def test_message_format_without_cause():
    err = InvalidInputError("insufficient funds")
    assert str(err) == "domain.invalid: insufficient funds"
    assert err.message == "insufficient funds"


def test_message_includes_cause():
    inner = NotFoundError("wallet not found")
    outer = GetError("failed to get balance", cause=inner)
    assert str(outer) == "domain.failed_to_get: failed to get balance, cause: storage.not_found: wallet not found"
    assert outer.__cause__ is inner


def test_raise_from_sets_cause_in_message():
    cause = StorageGetError("failed to get balance")
    caught = None
    try:
        raise GetError("failed to get balance") from cause
    except GetError as exc:
        caught = exc
    assert caught.__cause__ is cause
    text = str(caught)
    assert text.startswith("domain.failed_to_get: failed to get balance")
    assert "storage.failed_to_get" in text
    assert is_server_error(caught)


def test_not_found_direct_and_wrapped():
    direct = NotFoundError("wallet not found")
    wrapped = GetError("failed to get balance", cause=direct)
    assert is_not_found(direct)
    assert is_not_found(wrapped)
    assert not is_not_found(GetError("x", cause=StorageGetError("y")))
    assert not is_not_found(ValueError("boom"))


def test_client_error_classification():
    assert is_client_error(InvalidInputError("invalid input fields"))
    assert is_client_error(GetError("x", cause=NotFoundError("y")))
    assert not is_client_error(GetError("x", cause=StorageGetError("y")))
    assert not is_client_error(GetError("x"))


def test_server_error_requires_internal_cause():
    assert is_server_error(GetError("x", cause=StorageGetError("y")))
    assert is_server_error(UpdateError("x", cause=StorageUpdateError("y")))
    assert not is_server_error(GetError("x", cause=NotFoundError("y")))
    assert not is_server_error(GenerateError("x", cause=OSError("no entropy")))
    assert not is_server_error(InvalidInputError("x"))


@pytest.mark.parametrize(
    "err", [StorageInsertError("a"), StorageGetError("b"), UnhandledError("c")]
)
def test_internal_errors(err):
    assert is_internal_error(err)
    assert not is_external_error(err)
    assert isinstance(err, InternalError)


def test_external_errors():
    err = NotFoundError("transactions not found")
    assert is_external_error(err)
    assert not is_internal_error(err)


@pytest.mark.parametrize("cls", [GenerateError, GetError, InsertError, UpdateError])
def test_server_error_types(cls):
    err = cls("failure")
    assert isinstance(err, ServerError)
    assert not isinstance(err, ClientError)
    assert str(err).startswith(cls.kind)


def test_none_is_not_classified():
    assert not is_not_found(None)
    assert not is_client_error(None)
    assert not is_server_error(None)