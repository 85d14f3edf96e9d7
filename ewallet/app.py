"""HTTP API of the wallet service."""

from __future__ import annotations

import argparse
import os
import sqlite3
import threading
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from dotenv import load_dotenv
from flask import Blueprint, Flask, g, jsonify, request

from ewallet.balances import latest_balance
from ewallet.blacklist import add_to_blacklist, clean_blacklist, is_token_blacklisted
from ewallet.db import Database, database_from_env, from_timestamp
from ewallet.responses import Response
from ewallet.tokens import InvalidTokenError, decode_token, generate_token
from ewallet.transactions import (
    InsufficientBalanceError,
    TopUpRequest,
    TransferRequest,
    expense_history,
    history,
    income_history,
    top_up,
    total_expense,
    total_income,
    transfer,
)
from ewallet.users import (
    EmailInUseError,
    EmptyUserDataError,
    User,
    UserNotFoundError,
    get_user_by_email,
    list_users,
    register,
    update_user,
)

CLEAN_INTERVAL = timedelta(minutes=15)
DEFAULT_PORT = 8080


def _reply(status: int, success: bool, message: str, *, page_info: Any = None, result: Any = None):
    body = Response(success=success, message=message, page_info=page_info, result=result)
    return jsonify(body.to_dict()), status


def _payload() -> Mapping[str, Any]:
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form


def _bind(factory):
    try:
        return factory.from_mapping(_payload())
    except (TypeError, ValueError, OverflowError):
        return factory()


def _bearer() -> str | None:
    parts = request.headers.get("Authorization", "").split("Bearer ")
    return parts[1] if len(parts) >= 2 else None


def _page_param() -> int:
    try:
        return int(request.args.get("page", "1"))
    except ValueError:
        return 0


def create_app(db: Database, secret: str) -> Flask:
    """Build the web application serving the wallet API."""
    app = Flask(__name__)

    def verify_token():
        token = _bearer()
        if token is None:
            return _reply(401, False, "Unauthorized")
        try:
            revoked = is_token_blacklisted(db, token)
        except sqlite3.Error:
            return _reply(500, False, "Internal server error")
        if revoked:
            return _reply(401, False, "Unauthorized")
        try:
            claims = decode_token(token, secret)
            g.user_id = int(claims["userId"])
        except (InvalidTokenError, KeyError, TypeError, ValueError):
            return _reply(401, False, "Invalid token")
        return None

    auth = Blueprint("auth", __name__, url_prefix="/auth")
    users = Blueprint("users", __name__)
    transactions = Blueprint("transactions", __name__, url_prefix="/transactions")
    users.before_request(verify_token)
    transactions.before_request(verify_token)

    @auth.post("/register")
    def auth_register():
        try:
            register(db, _bind(User))
        except (EmptyUserDataError, EmailInUseError) as error:
            return _reply(400, False, str(error))
        except sqlite3.Error:
            return _reply(500, False, "Failed to register user")
        return _reply(200, True, "Create user success!")

    @auth.post("/login")
    def auth_login():
        data = _payload()
        email = str(data.get("email") or "")
        password = str(data.get("password") or "")
        pin = str(data.get("pin") or "")
        try:
            user = get_user_by_email(db, email)
        except UserNotFoundError:
            return _reply(400, False, "User is not registered")
        except sqlite3.Error:
            return _reply(500, False, "Internal server error")
        if user.email != email or user.password != password or user.pin != pin:
            return _reply(400, False, "Password and/or PIN is wrong!")
        try:
            token = generate_token(user, secret)
        except Exception:  # signing failures surface as a client-facing message
            return _reply(400, False, "Failed to generate token")
        return _reply(200, True, "Login success!", result=token)

    @users.put("/profile")
    def update_profile():
        try:
            update_user(db, _bind(User), g.user_id)
        except (EmptyUserDataError, EmailInUseError) as error:
            return _reply(400, False, str(error))
        except sqlite3.Error:
            return _reply(500, False, "Internal server error")
        return _reply(200, True, "Update profile success")

    @users.get("/users")
    def get_all_users():
        search = request.args.get("search", "a").lower()
        try:
            found, page_data = list_users(db, search, _page_param())
        except (sqlite3.Error, ValueError):
            return _reply(500, False, "Internal server error")
        return _reply(200, True, "Success to get users", page_info=page_data, result=found)

    @users.get("/balance")
    def get_balance():
        balance = latest_balance(db, g.user_id)
        return _reply(200, True, "Success to get user's balance", result={"balance": balance})

    @users.get("/income")
    def get_total_income():
        income, end, start = total_income(db, g.user_id)
        result = {"income": income, "duration": {"timeStart": start, "timeEnd": end}}
        return _reply(200, True, "Success to get user's income", result=result)

    @users.get("/expense")
    def get_total_expense():
        expense, end, start = total_expense(db, g.user_id)
        result = {"expense": expense, "duration": {"timeStart": start, "timeEnd": end}}
        return _reply(200, True, "Success to get user's expense", result=result)

    @users.post("/logout")
    def logout():
        token = _bearer() or ""
        try:
            expires_at = from_timestamp(float(decode_token(token, secret)["exp"]))
            add_to_blacklist(db, token, expires_at)
        except (sqlite3.Error, InvalidTokenError, KeyError, TypeError, ValueError):
            return _reply(500, False, "Failed to blacklist token")
        return _reply(200, True, "Logout successful")

    @transactions.post("/top-up")
    def top_up_view():
        try:
            top_up(db, _bind(TopUpRequest), g.user_id)
        except sqlite3.Error:
            return _reply(400, False, "Top up failed! Please try again")
        return _reply(200, True, "Top up success")

    @transactions.post("/transfer")
    def transfer_view():
        try:
            transfer(db, _bind(TransferRequest), g.user_id)
        except InsufficientBalanceError as error:
            return _reply(400, False, str(error))
        except sqlite3.Error:
            return _reply(400, False, "Transfer failed! Please try again")
        return _reply(200, True, "Transfer success")

    def _history_view(fetch, message: str):
        try:
            items, page_data = fetch(db, g.user_id, _page_param())
        except (sqlite3.Error, ValueError):
            return _reply(500, False, "Internal Server Error")
        return _reply(200, True, message, page_info=page_data, result=items)

    @transactions.get("")
    def history_view():
        return _history_view(history, "Success to get data history income transactions")

    @transactions.get("/expense")
    def expense_view():
        return _history_view(expense_history, "Success to get data history expense transactions")

    @transactions.get("/income")
    def income_view():
        return _history_view(income_history, "Success to get data history income transactions")

    app.register_blueprint(users)
    app.register_blueprint(auth)
    app.register_blueprint(transactions)
    return app


def _clean_periodically(db: Database, stop: threading.Event) -> None:
    while True:
        try:
            clean_blacklist(db)
        except sqlite3.Error:
            pass
        if stop.wait(CLEAN_INTERVAL.total_seconds()):
            return


def main(argv: list[str] | None = None) -> int:
    """Serve the wallet API, pruning expired revoked tokens in the background."""
    load_dotenv()
    parser = argparse.ArgumentParser(prog="ewallet", description="Serve the e-wallet HTTP API.")
    parser.add_argument("--port", type=int, default=int(os.environ.get("APP_PORT") or DEFAULT_PORT))
    args = parser.parse_args(argv)

    db = database_from_env(os.environ)
    stop = threading.Event()
    cleaner = threading.Thread(target=_clean_periodically, args=(db, stop), daemon=True)
    cleaner.start()
    try:
        create_app(db, os.environ.get("APP_SECRET", "")).run(host="0.0.0.0", port=args.port)
    finally:
        stop.set()
        db.close()
    return 0