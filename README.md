# walletledger

walletledger keeps a ledger of wallets and the transfers between them. It
stores everything in a SQLite database and answers requests over a small
JSON HTTP API. It needs nothing beyond the Python standard library.

## Running the server

After installing the package, start the server with:

    walletledger

Options:

- `--database PATH` — the SQLite file to use (default `./database.db`);
- `--port PORT` — the TCP port to listen on, 0 to 65535 (default `8080`).

On start-up it:

1. opens the SQLite database, creating the `wallets` and `transactions`
   tables if they are missing;
2. when the database holds no wallets yet, creates ten wallets, each with a
   random 64-character hexadecimal address and a balance of 100;
3. listens for HTTP requests on all interfaces at the chosen port until it
   receives SIGINT or SIGTERM, then shuts the server down, waiting up to five
   seconds, and closes the database.

The command exits with status 0 after a clean shutdown and 1 if the database
cannot be prepared, the port cannot be bound, or shutdown times out. It logs
at INFO level to standard error.

## HTTP API

### Send a transfer

    POST /api/send
    Content-Type: application/json

    {"from": "<sender address>", "to": "<recipient address>", "amount": "12.5"}

`amount` may be a JSON string or number. Keys are matched case-insensitively
and unknown keys are ignored. On success the answer is `201 Created` with the
plain-text body `Transaction successful`.

Both addresses must be given and differ, the amount must be positive, and the
sender must hold at least the amount. Both balances change and the transfer
is recorded in one database transaction, so a failed transfer leaves nothing
behind.

### Last transactions

    GET /api/transactions?count=N

Returns a JSON array of the N most recent transfers, newest first, for
example:

    [{"from": "...", "to": "...", "amount": "12.5", "created_at": "2024-05-01T10:00:00.5Z"}]

Amounts are given as decimal strings; `created_at` is an RFC 3339 timestamp in
UTC. `count` must be a positive integer. If there are no transfers yet the
answer is `404`.

### Wallet balance

    GET /api/wallet/<address>/balance

Returns `{"amount": "<balance>"}` with the wallet's current balance, or `404`
if the address is unknown.

### Errors

Errors from the endpoints above come back as JSON of the form
`{"error": "<message>"}`:

| Status | Meaning                                                           |
|--------|-------------------------------------------------------------------|
| 400    | malformed request, invalid fields or insufficient funds           |
| 404    | wallet or transactions not found                                  |
| 500    | internal failure (the message is always `Internal server error`)  |

A path that matches no route gets a plain-text `404 page not found`, and a
known path used with the wrong method gets a plain-text `405 Method Not
Allowed` with an `Allow` header. `HEAD` is accepted wherever `GET` is.

## Using it from Python

The pieces the command puts together are available on their own:

- `walletledger.app.build_application(database_path)` is a context manager:
  it opens and migrates the database, seeds the wallets if there are none,
  and yields the WSGI `walletledger.api.Application` serving the API above,
  closing the database connection on exit;
- `walletledger.api.Server` runs a WSGI application with `run(port, app)`,
  which blocks until `shutdown()` is called from another thread; its
  `started` event is set and `server_address` filled once it is listening;
- `walletledger.services.TransferService` offers `send`, `get_balance`,
  `get_last_n` and `generate_wallets`, taking the request records from
  `walletledger.dto` (`TransactionRequest`, `BalanceRequest`);
  `walletledger.services.Service(connection)` builds one over an SQLite
  connection;
- `walletledger.storage` provides `connect`, `apply_migrations`,
  `WalletRepository`, `TransactionRepository` and `Repository`;
- failures are raised as exceptions from `walletledger.errors`, for example
  `InvalidInputError` for bad input or insufficient funds and
  `NotFoundError` for an unknown wallet; `is_not_found`, `is_client_error`
  and `is_server_error` classify them.

```python
from decimal import Decimal

from walletledger.app import build_application
from walletledger.storage import connect, apply_migrations
from walletledger.services import Service
from walletledger.dto import BalanceRequest, TransactionRequest

connection = connect("ledger.db")
apply_migrations(connection)
service = Service(connection).transfer_service
service.generate_wallets()
```

Amounts are handled as `decimal.Decimal` throughout, so balances never pick
up binary rounding errors.

## What it does not do

There is no endpoint to create, rename or delete wallets: the only wallets
are the ten created when the database is empty. There is no authentication;
anyone who can reach the port can move funds.