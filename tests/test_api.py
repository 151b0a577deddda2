from bson import ObjectId

from auctionhouse.auth import decode_token, generate_token


def _signup(client, username="alice", email="alice@example.com", password="hunter2"):
    return client.post("/signup", json={"username": username, "email": email, "password": password})


def _create(client, end_time, starting_bid=10):
    resp = client.post("/auction", json={
        "title": "Lamp",
        "description": "Brass desk lamp",
        "startingBid": starting_bid,
        "auctionEndTime": end_time.isoformat(),
    })
    assert resp.status_code == 201
    return resp.json()["auctionItem"]


# ============================================================
# Accounts
# ============================================================

def test_signup_and_signin(client, store):
    resp = _signup(client)
    assert resp.status_code == 201
    assert resp.json() == {"message": "User created successfully"}

    resp = client.post("/signin", json={"email": "alice@example.com", "password": "hunter2"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Signed in successfully"
    assert decode_token(body["token"]) is not None


def test_signup_duplicate_is_500(client):
    _signup(client)
    resp = _signup(client, username="other")
    assert resp.status_code == 500
    assert resp.json()["message"] == "Error creating user"
    assert "already exists" in resp.json()["error"]


def test_signup_missing_password_is_500(client):
    resp = client.post("/signup", json={"username": "a", "email": "a@example.com"})
    assert resp.status_code == 500


def test_signin_unknown_user_is_404(client):
    resp = client.post("/signin", json={"email": "ghost@example.com", "password": "x"})
    assert resp.status_code == 404
    assert resp.json() == {"message": "User not found"}


def test_signin_wrong_password_is_400(client):
    _signup(client)
    resp = client.post("/signin", json={"email": "alice@example.com", "password": "nope"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid password"}


def test_me_requires_token(client):
    assert client.get("/me").status_code == 401

    resp = client.get("/me", headers={"Authorization": f"Bearer {generate_token('u1')}"})
    assert resp.status_code == 200
    assert resp.json()["userId"] == "u1"


# ============================================================
# Auctions
# ============================================================

def test_create_auction_shape(client, future):
    item = _create(client, future)

    assert set(item) >= {
        "_id", "title", "description", "startingBid", "auctionEndTime",
        "highestBid", "highestBidder", "isClosed",
    }
    assert item["highestBid"] == 0
    assert item["highestBidder"] == ""
    assert item["isClosed"] is False
    assert item["auctionEndTime"].endswith("Z")


def test_create_auction_missing_field_is_500(client):
    resp = client.post("/auction", json={"title": "Lamp"})
    assert resp.status_code == 500
    assert resp.json()["message"] == "Error creating auction"


def test_list_and_get(client, future):
    first = _create(client, future)
    second = _create(client, future)

    resp = client.get("/auctions")
    assert resp.status_code == 200
    assert [i["_id"] for i in resp.json()] == [first["_id"], second["_id"]]

    resp = client.get(f"/auctions/{first['_id']}")
    assert resp.status_code == 200
    assert resp.json()["_id"] == first["_id"]


def test_get_bad_and_unknown_ids(client):
    resp = client.get("/auctions/xyz")
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid auction item ID"}

    resp = client.get(f"/auctions/{ObjectId()}")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Auction item not found"}


def test_bidding_flow(client, future):
    item_id = _create(client, future)["_id"]

    resp = client.post(f"/bid/{item_id}", json={"bidAmount": 50, "bidderName": "alice"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Bid placed successfully"
    assert resp.json()["auctionItem"]["highestBid"] == 50
    assert resp.json()["auctionItem"]["highestBidder"] == "alice"

    resp = client.post(f"/bid/{item_id}", json={"bidAmount": 30, "bidderName": "bob"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Bid amount must be higher than the current bid of 50"}

    resp = client.post(f"/bid/{item_id}", json={"bidAmount": 60, "bidderName": "carol"})
    assert resp.status_code == 200
    assert resp.json()["auctionItem"]["highestBid"] == 60


def test_bid_errors(client, future):
    item_id = _create(client, future)["_id"]

    resp = client.post(f"/bid/{item_id}", json={"bidAmount": "abc", "bidderName": "alice"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid bid amount"}

    assert client.post("/bid/nope", json={"bidAmount": 5}).status_code == 400
    assert client.post(f"/bid/{ObjectId()}", json={"bidAmount": 5}).status_code == 404


def test_expired_listing_closes_on_bid(client, past):
    item_id = _create(client, past)["_id"]

    resp = client.post(f"/bid/{item_id}", json={"bidAmount": 20, "bidderName": "alice"})
    assert resp.status_code == 200
    assert resp.json()["auctionItem"]["isClosed"] is True

    resp = client.post(f"/bid/{item_id}", json={"bidAmount": 500, "bidderName": "bob"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Auction has closed"}


def test_update_auction(client, future):
    item_id = _create(client, future)["_id"]

    resp = client.put(f"/auction/{item_id}", json={"title": "Floor lamp", "startingBid": 0})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Auction item updated successfully"
    assert body["auctionItem"]["title"] == "Floor lamp"
    assert body["auctionItem"]["startingBid"] == 10

    assert client.put("/auction/bad", json={"title": "x"}).status_code == 400
    assert client.put(f"/auction/{ObjectId()}", json={"title": "x"}).status_code == 404


def test_strict_updates_setting(client, future, monkeypatch):
    from auctionhouse.config import get_settings

    item_id = _create(client, future)["_id"]
    monkeypatch.setenv("STRICT_UPDATES", "true")
    get_settings.cache_clear()

    resp = client.put(f"/auction/{item_id}", json={"startingBid": 0})
    assert resp.json()["auctionItem"]["startingBid"] == 0


def test_delete_then_get_is_404(client, future):
    item_id = _create(client, future)["_id"]

    resp = client.delete(f"/auction/{item_id}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Auction item deleted successfully"}

    assert client.get(f"/auctions/{item_id}").status_code == 404
    assert client.delete(f"/auction/{item_id}").status_code == 404
    assert client.delete("/auction/bad").status_code == 400


def test_listing_writes_open_without_auth_by_default(client, future):
    _create(client, future)


def test_auth_required_guards_listing_writes(client, future, monkeypatch):
    from auctionhouse.config import get_settings

    monkeypatch.setenv("AUTH_REQUIRED", "true")
    get_settings.cache_clear()

    body = {
        "title": "Lamp",
        "description": "Brass",
        "startingBid": 10,
        "auctionEndTime": future.isoformat(),
    }
    assert client.post("/auction", json=body).status_code == 401

    headers = {"Authorization": f"Bearer {generate_token('u1')}"}
    assert client.post("/auction", json=body, headers=headers).status_code == 201
    # Reads stay public
    assert client.get("/auctions").status_code == 200


def test_non_object_body_is_400(client):
    resp = client.post("/signin", json=["not", "an", "object"])
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid request body"


def test_serverless_handler_wraps_app():
    from mangum import Mangum
    from auctionhouse.api import app
    from auctionhouse.serverless import handler

    assert isinstance(handler, Mangum)
    assert handler.app is app


def test_non_object_body_on_create_routes_is_500(client):
    resp = client.post("/signup", json=["a"])
    assert resp.status_code == 500
    assert resp.json()["message"] == "Error creating user"
    assert "error" in resp.json()

    resp = client.post("/auction", json=["a"])
    assert resp.status_code == 500
    assert resp.json()["message"] == "Error creating auction"
    assert "error" in resp.json()


def test_whole_amounts_serialize_as_integers(client, future):
    item = _create(client, future, starting_bid=10)
    assert isinstance(item["startingBid"], int)
    assert isinstance(item["highestBid"], int)

    resp = client.post(f"/bid/{item['_id']}", json={"bidAmount": "50", "bidderName": "alice"})
    assert resp.json()["auctionItem"]["highestBid"] == 50
    assert isinstance(resp.json()["auctionItem"]["highestBid"], int)

    resp = client.post(f"/bid/{item['_id']}", json={"bidAmount": 50.5, "bidderName": "bob"})
    assert resp.json()["auctionItem"]["highestBid"] == 50.5
