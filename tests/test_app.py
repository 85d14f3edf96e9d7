import pytest

from ewallet.app import create_app
from ewallet.db import Database
from ewallet.tokens import decode_token
from ewallet.users import get_user_by_email

SECRET = "secret"
ALICE = "alice@example.com"
BOB = "bob@example.com"


@pytest.fixture
def db():
    database = Database(":memory:")
    database.create_schema()
    yield database
    database.close()


@pytest.fixture
def client(db):
    app = create_app(db, SECRET)
    app.testing = True
    return app.test_client()


def _register(client, email, name="Alice", phone="phone-a"):
    password = "password"
    return client.post(
        "/auth/register",
        json={"name": name, "email": email, "phoneNumber": phone, "password": password, "pin": "placeholder"},
    )


def _login(client, email):
    password = "password"
    response = client.post("/auth/login", json={"email": email, "password": password, "pin": "placeholder"})
    return response.get_json()["results"]


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_success(client):
    response = _register(client, ALICE)
    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Create user success!"}


def test_register_missing_fields(client):
    response = client.post("/auth/register", json={"email": ALICE})
    assert response.status_code == 400
    assert response.get_json()["message"] == "user data should not be empty"


def test_register_duplicate_email(client):
    _register(client, ALICE)
    response = _register(client, ALICE, name="Other")
    assert response.status_code == 400
    assert response.get_json()["message"] == "email already used by another user"


def test_login_returns_token_for_user(client, db):
    _register(client, ALICE)
    token = _login(client, ALICE)
    assert decode_token(token, SECRET)["userId"] == get_user_by_email(db, ALICE).id


def test_login_wrong_pin(client):
    _register(client, ALICE)
    password = "password"
    response = client.post("/auth/login", json={"email": ALICE, "password": password, "pin": "secret"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Password and/or PIN is wrong!"


def test_login_unregistered(client):
    password = "password"
    response = client.post("/auth/login", json={"email": BOB, "password": password, "pin": "placeholder"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "User is not registered"


def test_protected_route_without_header(client):
    response = client.get("/balance")
    assert response.status_code == 401
    assert response.get_json()["message"] == "Unauthorized"


def test_protected_route_with_bad_token(client):
    response = client.get("/transactions", headers=_auth("token"))
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid token"


def test_top_up_raises_balance(client):
    _register(client, ALICE)
    token = _login(client, ALICE)
    response = client.post("/transactions/top-up", json={"nominal": 100}, headers=_auth(token))
    assert response.get_json()["message"] == "Top up success"
    balance = client.get("/balance", headers=_auth(token)).get_json()["results"]["balance"]
    assert balance == 100.0


def test_transfer_insufficient_balance(client, db):
    _register(client, ALICE)
    _register(client, BOB, name="Bob", phone="phone-b")
    token = _login(client, ALICE)
    bob_id = get_user_by_email(db, BOB).id
    response = client.post(
        "/transactions/transfer", json={"nominal": 10, "otherUserId": bob_id}, headers=_auth(token)
    )
    assert response.status_code == 400
    assert response.get_json()["message"] == "insufficient balance"


def test_transfer_moves_money_and_shows_in_history(client, db):
    _register(client, ALICE)
    _register(client, BOB, name="Bob", phone="phone-b")
    alice_token = _login(client, ALICE)
    bob_token = _login(client, BOB)
    alice_id = get_user_by_email(db, ALICE).id
    bob_id = get_user_by_email(db, BOB).id

    client.post("/transactions/top-up", json={"nominal": 100}, headers=_auth(alice_token))
    response = client.post(
        "/transactions/transfer",
        data={"nominal": "30", "otherUserId": str(bob_id), "notes": "lunch"},
        headers=_auth(alice_token),
    )
    assert response.get_json()["message"] == "Transfer success"

    alice_balance = client.get("/balance", headers=_auth(alice_token)).get_json()["results"]["balance"]
    bob_balance = client.get("/balance", headers=_auth(bob_token)).get_json()["results"]["balance"]
    assert alice_balance == 70.0
    assert bob_balance == 30.0

    body = client.get("/transactions", headers=_auth(alice_token)).get_json()
    assert body["pageInfo"]["totalData"] == 2
    assert len(body["results"]) == 2
    newest = body["results"][0]
    assert newest["type"] == "expense"
    assert newest["idOtherUser"] == bob_id
    assert newest["notes"] == "lunch"

    incoming = client.get("/transactions/income", headers=_auth(bob_token)).get_json()["results"]
    assert [(item["type"], item["idOtherUser"]) for item in incoming] == [("income", alice_id)]

    expense = client.get("/expense", headers=_auth(alice_token)).get_json()["results"]
    assert expense["expense"] == 30.0
    assert set(expense["duration"]) == {"timeStart", "timeEnd"}


def test_income_totals_top_up(client):
    _register(client, ALICE)
    token = _login(client, ALICE)
    client.post("/transactions/top-up", json={"nominal": 100}, headers=_auth(token))
    result = client.get("/income", headers=_auth(token)).get_json()["results"]
    assert result["income"] == 100.0
    assert result["duration"]["timeStart"] < result["duration"]["timeEnd"]


def test_history_page_zero_is_server_error(client):
    _register(client, ALICE)
    token = _login(client, ALICE)
    response = client.get("/transactions/expense?page=0", headers=_auth(token))
    assert response.status_code == 500
    assert response.get_json()["message"] == "Internal Server Error"


def test_users_search(client):
    _register(client, ALICE)
    _register(client, BOB, name="Bob", phone="phone-b")
    token = _login(client, ALICE)
    body = client.get("/users?search=BOB", headers=_auth(token)).get_json()
    assert [user["email"] for user in body["results"]] == [BOB]
    assert body["pageInfo"]["totalData"] == 1


def test_logout_revokes_token(client):
    _register(client, ALICE)
    token = _login(client, ALICE)
    response = client.post("/logout", headers=_auth(token))
    assert response.get_json()["message"] == "Logout successful"
    after = client.get("/balance", headers=_auth(token))
    assert after.status_code == 401
    assert after.get_json()["message"] == "Unauthorized"


def test_update_profile_changes_login(client):
    _register(client, ALICE)
    token = _login(client, ALICE)
    password = "password"
    response = client.put(
        "/profile",
        json={"name": "Alice", "email": BOB, "phoneNumber": "phone-a", "password": password, "pin": "placeholder"},
        headers=_auth(token),
    )
    assert response.get_json()["message"] == "Update profile success"
    assert decode_token(_login(client, BOB), SECRET)["userId"] == decode_token(token, SECRET)["userId"]


def test_update_profile_empty(client):
    _register(client, ALICE)
    token = _login(client, ALICE)
    response = client.put("/profile", json={"name": "Alice"}, headers=_auth(token))
    assert response.status_code == 400
    assert response.get_json()["message"] == "user data should not be empty"