import io
import json
import sqlite3
from wsgiref.util import setup_testing_defaults

import pytest

from walletledger.app import build_application, main


def get(app, path):
    environ = {}
    setup_testing_defaults(environ)
    environ.update(
        {
            "REQUEST_METHOD": "GET",
            "PATH_INFO": path,
            "QUERY_STRING": "",
            "CONTENT_LENGTH": "0",
            "wsgi.input": io.BytesIO(b""),
        }
    )
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = int(status.split()[0])

    body = b"".join(app(environ, start_response))
    return captured["status"], body


def wallet_addresses(path):
    with sqlite3.connect(path) as connection:
        return sorted(row[0] for row in connection.execute("SELECT address FROM wallets"))


def test_build_application_seeds_ten_wallets(tmp_path):
    path = str(tmp_path / "ledger.db")
    with build_application(path) as app:
        addresses = wallet_addresses(path)
        assert len(addresses) == 10
        assert len(set(addresses)) == len(addresses)
        for address in addresses:
            assert get(app, f"/api/wallet/{address}/balance") == (200, b'{"amount":"100"}\n')


def test_build_application_keeps_existing_wallets(tmp_path):
    path = str(tmp_path / "ledger.db")
    with build_application(path):
        first = wallet_addresses(path)
    with build_application(path):
        second = wallet_addresses(path)
    assert first == second


def test_application_fails_after_connection_closed(tmp_path):
    path = str(tmp_path / "ledger.db")
    with build_application(path) as app:
        address = wallet_addresses(path)[0]
    status, body = get(app, f"/api/wallet/{address}/balance")
    assert status == 500
    assert json.loads(body) == {"error": "Internal server error"}


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit) as info:
        main(["--port", "not-a-port"])
    assert info.value.code == 2


def test_main_fails_when_database_cannot_open(tmp_path):
    path = str(tmp_path / "missing" / "ledger.db")
    assert main(["--database", path, "--port", "0"]) == 1