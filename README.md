# ewallet

A small e-wallet web service. Users register, log in with e-mail, password and
PIN, and receive a bearer token that is valid for fifteen minutes. With that
token they can top up their balance, transfer money to other users, browse their
transaction history and see their income and expense over the last seven days.
Logging out puts the token on a blacklist until it expires.

Data is kept in a single SQLite database file.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Running the server

```
ewallet
ewallet --port 9000
```

The server listens on all interfaces. Settings are read from the environment,
and from a `.env` file in the working directory if one is present:

- `APP_SECRET`: the key used to sign and verify tokens.
- `APP_PORT`: the port to listen on when `--port` is not given (default `8080`).
- `DATABASE_PATH`: the SQLite file to use (default `ewallet.db`). The tables
  are created if they do not exist yet.

While it runs, the server removes expired tokens from the blacklist every
fifteen minutes.

## Using it from Python

```python
from ewallet.app import create_app
from ewallet.db import Database

db = Database("ewallet.db")
db.create_schema()

app = create_app(db, "secret")
app.run(port=8080)
```

`create_app` returns a Flask application, so it can also be handed to any WSGI
server or exercised with Flask's test client. `ewallet.db.database_from_env`
opens the database named by `DATABASE_PATH` and creates its schema.

The operations behind the endpoints can be called directly as well:

- `ewallet.users`: `register`, `update_user`, `get_user`, `get_user_by_email`,
  `list_users` and `paginate`; they raise `EmptyUserDataError` and
  `EmailInUseError`.
- `ewallet.transactions`: `top_up`, `transfer` (raises
  `InsufficientBalanceError`), `history`, `expense_history`, `income_history`,
  `total_income` and `total_expense`.
- `ewallet.balances`: `latest_balance` and `make_account_balance`.
- `ewallet.blacklist`: `add_to_blacklist`, `is_token_blacklisted` and
  `clean_blacklist`.
- `ewallet.tokens`: `generate_token` and `decode_token` (raises
  `InvalidTokenError`).

## API

Every response is a JSON object with `success` and `message`, and, where there
is something to return, `results` and `pageInfo`
(`totalData`, `totalPage`, `currentPage`). Lists are paged five items at a time
with the `page` query parameter (default `1`); a page below 1 or a value that
is not a number is answered with an error.

Request bodies may be sent as JSON or as form fields.

### Authentication

| Method | Path             | Body                                                        |
|--------|------------------|-------------------------------------------------------------|
| POST   | `/auth/register` | `name`, `email`, `phoneNumber`, `password`, `pin`           |
| POST   | `/auth/login`    | `email`, `password`, `pin`; returns a token in `results`    |

All five registration fields are required, and an e-mail address can belong to
one user only. A new user starts with a balance of zero.

### Account (token required)

Send the token as `Authorization: Bearer token`.

| Method | Path       | Purpose                                                        |
|--------|------------|----------------------------------------------------------------|
| PUT    | `/profile` | Replace name, e-mail, phone number, password and PIN           |
| GET    | `/users`   | Search users by name or phone number (`search`, default `a`; `page`) |
| GET    | `/balance` | Current balance                                                |
| GET    | `/income`  | Income over the last seven days, with the time window          |
| GET    | `/expense` | Expense over the last seven days, with the time window         |
| POST   | `/logout`  | Blacklist the current token                                    |

### Transactions (token required)

| Method | Path                        | Purpose                                            |
|--------|-----------------------------|----------------------------------------------------|
| POST   | `/transactions/top-up`      | Add `nominal` to your balance                      |
| POST   | `/transactions/transfer`    | Send `nominal` to `otherUserId`, with `notes`      |
| GET    | `/transactions`             | All transactions, newest first                     |
| GET    | `/transactions/expense`     | Outgoing transfers                                 |
| GET    | `/transactions/income`      | Top-ups and incoming transfers                     |

A transfer larger than the sender's balance is refused with
`insufficient balance`.

### Example

```
curl -X POST localhost:8080/auth/register \
     -H 'Content-Type: application/json' \
     -d '{"name": "Alice", "email": "alice@example.com", "phoneNumber": "0000",
          "password": "password", "pin": "placeholder"}'
```

## Limitations

Passwords and PINs are stored and compared exactly as they are sent; they are
not hashed. E-mail addresses are not checked for form. There is no way to
delete a user or to undo a transaction.