"""HTTP interface: a WSGI application over the transfer service and a threaded server."""

from __future__ import annotations

import json
import logging
import re
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from http import HTTPStatus
from socketserver import ThreadingMixIn
from typing import Any
from urllib.parse import parse_qsl
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from walletledger.dto import BalanceRequest, TransactionRequest
from walletledger.errors import ServiceError, StorageError, is_client_error, is_not_found

logger = logging.getLogger(__name__)

_MAX_COUNT = 2**63 - 1
_COUNT_PATTERN = re.compile(r"[+-]?\d+")
_JSON_WHITESPACE = " \t\n\r"
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass
class _Response:
    status: int
    body: bytes = b""
    headers: list[tuple[str, str]] = field(default_factory=list)


def _encode_json(value: Any) -> bytes:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return (text + "\n").encode("utf-8")


def _json_response(status: int, value: Any) -> _Response:
    return _Response(status, _encode_json(value), [("Content-Type", "application/json")])


def _error_response(message: str, status: int) -> _Response:
    logger.info("HTTP %d: %s", status, message)
    return _json_response(status, {"error": message})


def _service_error_response(err: BaseException) -> _Response:
    if not isinstance(err, (ServiceError, StorageError)):
        logger.error("Unclassified service error: %s", err)
        return _Response(HTTPStatus.OK)
    if is_not_found(err):
        return _error_response(str(err), HTTPStatus.NOT_FOUND)
    if is_client_error(err):
        return _error_response(str(err), HTTPStatus.BAD_REQUEST)
    return _error_response("Internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _decode_transaction(body: bytes) -> TransactionRequest:
    text = body.decode("utf-8").lstrip(_JSON_WHITESPACE)
    decoder = json.JSONDecoder(parse_float=Decimal, parse_constant=_reject_constant)
    payload, _ = decoder.raw_decode(text)
    if payload is None:
        return TransactionRequest()
    return TransactionRequest.from_mapping(payload)


def _read_body(environ: dict[str, Any]) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if length <= 0:
        return b""
    return environ["wsgi.input"].read(length)


def _parse_count(query: str) -> int | None:
    values = [value for key, value in parse_qsl(query, keep_blank_values=True) if key == "count"]
    text = values[0] if values else ""
    if not _COUNT_PATTERN.fullmatch(text):
        return None
    count = int(text)
    if count <= 0 or count > _MAX_COUNT:
        return None
    return count


def _request_path(environ: dict[str, Any]) -> str:
    path = environ.get("PATH_INFO", "") or "/"
    try:
        return path.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return path


def _status_line(status: int) -> str:
    return f"{status} {HTTPStatus(status).phrase}"


_Handler = Callable[..., _Response]


class Application:
    """WSGI application exposing transfers, transaction history and balances.

    Routes:
      POST /api/send                       perform a transfer
      GET  /api/transactions?count=N       last N transactions, newest first
      GET  /api/wallet/{address}/balance   balance of one wallet
    """

    def __init__(self, transfer_service: Any) -> None:
        self._service = transfer_service
        self._routes: list[tuple[str, re.Pattern[str], _Handler]] = [
            ("POST", re.compile(r"/api/send"), self._send),
            ("GET", re.compile(r"/api/transactions"), self._get_transactions),
            ("GET", re.compile(r"/api/wallet/(?P<address>[^/]*)/balance"), self._get_balance),
        ]

    def __call__(
        self, environ: dict[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        method = environ.get("REQUEST_METHOD", "GET")
        response = self._dispatch(method, _request_path(environ), environ)
        headers = [*response.headers, ("Content-Length", str(len(response.body)))]
        start_response(_status_line(response.status), headers)
        return [b"" if method == "HEAD" else response.body]

    def _dispatch(self, method: str, path: str, environ: dict[str, Any]) -> _Response:
        allowed: set[str] = set()
        for route_method, pattern, handler in self._routes:
            match = pattern.fullmatch(path)
            if match is None:
                continue
            methods = {route_method, "HEAD"} if route_method == "GET" else {route_method}
            if method in methods:
                return handler(environ, **match.groupdict())
            allowed |= methods
        if allowed:
            return _Response(
                HTTPStatus.METHOD_NOT_ALLOWED,
                b"Method Not Allowed\n",
                [
                    ("Allow", ", ".join(sorted(allowed))),
                    ("Content-Type", "text/plain; charset=utf-8"),
                ],
            )
        return _Response(
            HTTPStatus.NOT_FOUND,
            b"404 page not found\n",
            [("Content-Type", "text/plain; charset=utf-8")],
        )

    def _send(self, environ: dict[str, Any]) -> _Response:
        try:
            request = _decode_transaction(_read_body(environ))
        except ValueError:
            return _error_response("Invalid request payload", HTTPStatus.BAD_REQUEST)
        try:
            self._service.send(request)
        except Exception as exc:
            return _service_error_response(exc)
        return _Response(
            HTTPStatus.CREATED,
            b"Transaction successful",
            [("Content-Type", "text/plain; charset=utf-8")],
        )

    def _get_transactions(self, environ: dict[str, Any]) -> _Response:
        count = _parse_count(environ.get("QUERY_STRING", ""))
        if count is None:
            return _error_response("Invalid count parameter", HTTPStatus.BAD_REQUEST)
        try:
            transactions = self._service.get_last_n(count)
        except Exception as exc:
            return _service_error_response(exc)
        return _json_response(HTTPStatus.OK, [item.to_json() for item in transactions])

    def _get_balance(self, environ: dict[str, Any], address: str) -> _Response:
        if not address:
            return _error_response("Wallet address is required", HTTPStatus.BAD_REQUEST)
        try:
            balance = self._service.get_balance(BalanceRequest(address=address))
        except Exception as exc:
            return _service_error_response(exc)
        return _json_response(HTTPStatus.OK, balance.to_json())


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _RequestHandler(WSGIRequestHandler):
    timeout = 10

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class Server:
    """Threaded HTTP server with a blocking run and a shutdown callable from elsewhere."""

    def __init__(self) -> None:
        self._httpd: _ThreadingWSGIServer | None = None
        self.server_address: tuple[str, int] | None = None
        self.started = threading.Event()

    def run(self, port: str | int, app: Callable[..., Iterable[bytes]]) -> None:
        """Serve ``app`` on all interfaces at ``port`` until shutdown is called."""
        httpd = make_server(
            "",
            int(port),
            app,
            server_class=_ThreadingWSGIServer,
            handler_class=_RequestHandler,
        )
        self._httpd = httpd
        host, bound_port = httpd.server_address[:2]
        self.server_address = (str(host), int(bound_port))
        self.started.set()
        try:
            httpd.serve_forever()
        finally:
            httpd.server_close()

    def shutdown(self) -> None:
        """Stop serving and wait for the serving loop to finish."""
        if self._httpd is None:
            raise RuntimeError("server is not running")
        self._httpd.shutdown()