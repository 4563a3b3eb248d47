"""Application entry point: prepares the database and serves the HTTP API."""

from __future__ import annotations

import argparse
import logging
import signal
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from walletledger.api import Application, Server
from walletledger.errors import ServiceError, StorageError
from walletledger.services import Service
from walletledger.storage import DEFAULT_DATABASE_PATH, apply_migrations, connect

logger = logging.getLogger(__name__)

DEFAULT_PORT = "8080"
SHUTDOWN_TIMEOUT = 5.0


@contextmanager
def build_application(database_path: str = DEFAULT_DATABASE_PATH) -> Iterator[Application]:
    """Open and migrate the database, seed wallets, and yield the WSGI application.

    The database connection is closed when the context exits.
    """
    connection = connect(database_path)
    try:
        apply_migrations(connection)
        service = Service(connection)
        service.transfer_service.generate_wallets()
        yield Application(service.transfer_service)
    finally:
        connection.close()


def _port(value: str) -> str:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 0 <= number <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {value!r}")
    return str(number)


def _serve(application: Application, port: str) -> int:
    server = Server()
    stop = threading.Event()
    failures: list[BaseException] = []

    def run() -> None:
        try:
            server.run(port, application)
        except OSError as exc:
            failures.append(exc)
            stop.set()

    previous = {
        sig: signal.signal(sig, lambda *_: stop.set())
        for sig in (signal.SIGINT, signal.SIGTERM)
    }
    thread = threading.Thread(target=run, name="http-server", daemon=True)
    try:
        thread.start()
        logger.info("Server started at :%s", port)
        while not stop.wait(0.5):
            pass
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if failures:
        logger.error("Server failed: %s", failures[0])
        return 1

    logger.info("Shutting down server...")
    closer = threading.Thread(target=server.shutdown, daemon=True)
    closer.start()
    closer.join(SHUTDOWN_TIMEOUT)
    if closer.is_alive():
        logger.error("Server shutdown failed: timed out")
        return 1
    thread.join(SHUTDOWN_TIMEOUT)
    logger.info("Server exited properly")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the wallet ledger HTTP service until SIGINT or SIGTERM."""
    parser = argparse.ArgumentParser(
        prog="walletledger", description="Serve the wallet transfer API."
    )
    parser.add_argument("--database", default=DEFAULT_DATABASE_PATH, help="SQLite file")
    parser.add_argument("--port", type=_port, default=DEFAULT_PORT, help="TCP port")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        with build_application(args.database) as application:
            return _serve(application, args.port)
    except (sqlite3.Error, StorageError, ServiceError) as exc:
        logger.error("Failed to prepare the database: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())