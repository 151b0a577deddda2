"""Auction House HTTP API.

Route paths, status codes and body shapes are fixed; existing clients depend
on them.
"""

from typing import Optional, Any

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
from dotenv import load_dotenv

from .accounts import register_user, authenticate_user
from .auth import AuthenticatedUser, require_auth, listing_write_auth
from .bidding import place_bid, BidLocks
from .config import get_settings
from .db import AuctionDB, serialize_doc
from .errors import AuctionHouseError, NotFoundError
from .listings import create_listing, get_listing, list_listings, update_listing, delete_listing
from .models import (
    SignUpRequest,
    SignInRequest,
    AuctionCreateRequest,
    AuctionUpdateRequest,
    BidRequest,
)

load_dotenv()
logger = structlog.get_logger()

app = FastAPI(
    title="Auction House",
    description="Auction marketplace: accounts, listings and bidding",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared by every bid request handled by this process
bid_locks = BidLocks()


def error_response(status_code: int, message: str, error: Optional[Any] = None) -> JSONResponse:
    content = {"message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


def get_db(request: Request) -> AuctionDB:
    """FastAPI dependency returning the store opened at startup."""
    return request.app.state.db


# Routes whose only failure status is 500, with their error message
CREATE_ROUTE_ERRORS = {
    "/signup": "Error creating user",
    "/auction": "Error creating auction",
}


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    message = CREATE_ROUTE_ERRORS.get(request.url.path)
    if message and request.method == "POST":
        logger.error("request_body_invalid", path=request.url.path, error=str(exc))
        return error_response(500, message, str(exc))
    return error_response(400, "Invalid request body", str(exc))


# ============================================================
# Lifecycle
# ============================================================

@app.on_event("startup")
async def startup():
    app.state.db = AuctionDB.connect(get_settings())
    await app.state.db.init()
    logger.info("auctionhouse_api_started", port=get_settings().port)


@app.on_event("shutdown")
async def shutdown():
    db = getattr(app.state, "db", None)
    if db:
        db.close()
    logger.info("auctionhouse_api_stopped")


@app.get("/")
def root():
    """API info."""
    return {
        "name": "Auction House",
        "version": "0.1.0",
        "status": "operational",
    }


@app.get("/health")
async def health(db: AuctionDB = Depends(get_db)):
    """Report whether the store answers a ping."""
    try:
        await db.ping()
    except Exception as e:
        return error_response(503, "Database unavailable", str(e))
    return {"status": "ok", "database": db.database_name}


# ============================================================
# Account Endpoints
# ============================================================

@app.post("/signup", status_code=201)
async def signup(request: Optional[SignUpRequest] = None, db: AuctionDB = Depends(get_db)):
    """Register a user. Every failure, duplicates included, is a 500."""
    request = request or SignUpRequest()
    try:
        await register_user(db, request.username, request.email, request.password)
    except Exception as e:
        logger.error("signup_failed", error=str(e))
        return error_response(500, "Error creating user", str(e))

    return {"message": "User created successfully"}


@app.post("/signin")
async def signin(request: Optional[SignInRequest] = None, db: AuctionDB = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    request = request or SignInRequest()
    try:
        token = await authenticate_user(db, request.email, request.password)
    except NotFoundError as e:
        return error_response(404, e.message)
    except AuctionHouseError as e:
        return error_response(400, e.message)
    except Exception as e:
        logger.error("signin_failed", error=str(e))
        return error_response(500, "Error signing in", str(e))

    return {"message": "Signed in successfully", "token": token}


@app.get("/me")
async def me(auth: AuthenticatedUser = Depends(require_auth)):
    """Identity carried by the caller's token."""
    return {
        "userId": auth.user_id,
        "expiresAt": auth.expires_at.isoformat() if auth.expires_at else None,
    }


# ============================================================
# Auction Endpoints
# ============================================================

@app.post("/auction", status_code=201)
async def create_auction(
    request: Optional[AuctionCreateRequest] = None,
    db: AuctionDB = Depends(get_db),
    auth: Optional[AuthenticatedUser] = Depends(listing_write_auth),
):
    """Create a listing. Every failure, missing fields included, is a 500."""
    request = request or AuctionCreateRequest()
    try:
        item = await create_listing(
            db,
            title=request.title,
            description=request.description,
            starting_bid=request.startingBid,
            auction_end_time=request.auctionEndTime,
        )
    except Exception as e:
        logger.error("auction_create_failed", error=str(e))
        return error_response(500, "Error creating auction", str(e))

    return {"message": "Auction created successfully", "auctionItem": serialize_doc(item)}


@app.post("/bid/{item_id}")
async def bid(
    item_id: str,
    request: Optional[BidRequest] = None,
    db: AuctionDB = Depends(get_db),
    auth: Optional[AuthenticatedUser] = Depends(listing_write_auth),
):
    """Place a bid on a listing."""
    request = request or BidRequest()
    locks = bid_locks if get_settings().bid_locking else None
    try:
        item = await place_bid(db, item_id, request.bidAmount, request.bidderName, locks=locks)
    except NotFoundError as e:
        return error_response(404, e.message)
    except AuctionHouseError as e:
        return error_response(400, e.message)
    except Exception as e:
        logger.error("bid_failed", item_id=item_id, error=str(e))
        return error_response(500, "Error placing bid", str(e))

    return {"message": "Bid placed successfully", "auctionItem": serialize_doc(item)}


@app.get("/auctions")
async def list_auctions(db: AuctionDB = Depends(get_db)):
    """Get all listings."""
    try:
        items = await list_listings(db)
    except Exception as e:
        logger.error("auction_list_failed", error=str(e))
        return error_response(500, "Error fetching auctions", str(e))

    return [serialize_doc(item) for item in items]


@app.get("/auctions/{item_id}")
async def get_auction(item_id: str, db: AuctionDB = Depends(get_db)):
    """Get one listing."""
    try:
        item = await get_listing(db, item_id)
    except NotFoundError as e:
        return error_response(404, e.message)
    except AuctionHouseError as e:
        return error_response(400, e.message)
    except Exception as e:
        logger.error("auction_fetch_failed", item_id=item_id, error=str(e))
        return error_response(500, "Error fetching auction", str(e))

    return serialize_doc(item)


@app.put("/auction/{item_id}")
async def update_auction(
    item_id: str,
    request: Optional[AuctionUpdateRequest] = None,
    db: AuctionDB = Depends(get_db),
    auth: Optional[AuthenticatedUser] = Depends(listing_write_auth),
):
    """Edit a listing's title, description, starting bid or end time."""
    request = request or AuctionUpdateRequest()
    try:
        item = await update_listing(
            db,
            item_id,
            request.model_dump(),
            strict=get_settings().strict_updates,
        )
    except NotFoundError as e:
        return error_response(404, e.message)
    except AuctionHouseError as e:
        return error_response(400, e.message)
    except Exception as e:
        logger.error("auction_update_failed", item_id=item_id, error=str(e))
        return error_response(500, "Error updating auction", str(e))

    return {"message": "Auction item updated successfully", "auctionItem": serialize_doc(item)}


@app.delete("/auction/{item_id}")
async def delete_auction(
    item_id: str,
    db: AuctionDB = Depends(get_db),
    auth: Optional[AuthenticatedUser] = Depends(listing_write_auth),
):
    """Permanently delete a listing."""
    try:
        await delete_listing(db, item_id)
    except NotFoundError as e:
        return error_response(404, e.message)
    except AuctionHouseError as e:
        return error_response(400, e.message)
    except Exception as e:
        logger.error("auction_delete_failed", item_id=item_id, error=str(e))
        return error_response(500, "Error deleting auction", str(e))

    return {"message": "Auction item deleted successfully"}
