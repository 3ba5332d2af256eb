from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse

from core import GameConfig, Player
from core.events import map_events
from core.exceptions import GameError, ValidationError
from core.game.config import CreditFormula
from core.snapshot import serialize_snapshot
from data import close_db, create_tables, init_db
from settings import get_app_settings

from .registry import RoomRegistry
from .schemas import (
    ActionResponse,
    ChooseDealRequest,
    CreateRoomRequest,
    CreateRoomResponse,
    CreditRequest,
    ErrorResponse,
    PayoffRequest,
    ResolveDealRequest,
    RollRequest,
    SellAssetRequest,
    TransferAssetRequest,
    TransferRequest,
    VersionedRequest,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "validation": 400,
    "not_found": 404,
    "state": 409,
    "concurrency": 409,
    "database": 503,
}

# OpenAPI documentation of the error body for room operations
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or not the caller's turn"},
    404: {"model": ErrorResponse, "description": "Unknown room, player, asset or pending deal"},
    409: {"model": ErrorResponse, "description": "Wrong phase or stale expected_version"},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    settings = get_app_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    registry.persist = settings.persistence_enabled
    logger.info(f"Starting Energy Money server (persistence={'on' if registry.persist else 'off'})")
    if registry.persist:
        await init_db()
        await create_tables()

    yield

    logger.info("Shutting down server")
    if registry.persist:
        await close_db()


app = FastAPI(
    title="Energy Money Server",
    version="0.1.0",
    lifespan=lifespan,
)
registry = RoomRegistry()


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    status = ERROR_STATUS.get(exc.kind, 400)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status, content=exc.to_dict())


# ---- Dependencies ----


async def get_caller(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity from the X-User-ID header."""
    if not x_user_id:
        raise ValidationError("Missing X-User-ID header")
    return x_user_id


async def _act(room_id: str, action, expected_version: Optional[int]) -> ActionResponse:
    result, state = await registry.apply(room_id, action, expected_version)
    return ActionResponse(version=state["version"], result=result, state=state)


# ---- Rooms ----


@app.post("/rooms", response_model=CreateRoomResponse, responses={400: ERROR_RESPONSES[400]})
async def create_room(req: CreateRoomRequest):
    settings = get_app_settings()
    formula = req.credit_formula or settings.credit_formula
    config = GameConfig(
        seed=req.seed if req.seed is not None else settings.default_seed,
        credit_formula=CreditFormula(formula),
    )
    players = [
        Player(
            seat.player_id,
            seat.name,
            monthly_income=seat.monthly_income,
            monthly_expenses=seat.monthly_expenses,
            starting_cash=seat.starting_cash,
        )
        for seat in req.players
    ]
    room_id, game = await registry.create_room(players, config)
    return CreateRoomResponse(room_id=room_id, version=game.version, state=serialize_snapshot(game))


@app.get("/rooms/{room_id}/game-state")
async def get_game_state(room_id: str):
    handle = await registry.get(room_id)
    return serialize_snapshot(handle.game)


@app.get("/rooms/{room_id}/transactions")
async def get_transactions(room_id: str, player_id: Optional[str] = None):
    handle = await registry.get(room_id)
    history = handle.game.ledger.history(player_id)
    return {"room_id": room_id, "transactions": [tx.to_dict() for tx in history]}


@app.get("/rooms/{room_id}/events")
async def get_events(room_id: str, since: int = Query(0, ge=0)):
    handle = await registry.get(room_id)
    game = handle.game
    events = map_events(game.emitter.get_events_since(since), board=game.board, start_index=since)
    return {"room_id": room_id, "since": since, "next": since + len(events), "events": events}


@app.get("/rooms/{room_id}/turns")
async def get_turns(room_id: str, limit: Optional[int] = Query(None, ge=0)):
    handle = await registry.get(room_id)
    game = handle.game
    return {"room_id": room_id, "stats": game.turn_stats(), "history": game.turn_history(limit)}


# ---- Turn ----


@app.post("/rooms/{room_id}/roll", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def roll(room_id: str, req: Optional[RollRequest] = None, caller: str = Depends(get_caller)):
    req = req or RollRequest()
    return await _act(room_id, lambda game: game.roll(caller, req.dice_count), req.expected_version)


@app.post("/rooms/{room_id}/end-turn", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def end_turn(room_id: str, req: Optional[VersionedRequest] = None, caller: str = Depends(get_caller)):
    req = req or VersionedRequest()
    return await _act(
        room_id,
        lambda game: {"active_player_id": game.end_turn(caller)},
        req.expected_version,
    )


@app.post("/rooms/{room_id}/charity", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def charity(room_id: str, req: Optional[VersionedRequest] = None, caller: str = Depends(get_caller)):
    req = req or VersionedRequest()
    return await _act(room_id, lambda game: {"amount": game.donate_charity(caller)}, req.expected_version)


# ---- Deals ----


@app.post("/rooms/{room_id}/deals/choose", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def choose_deal(room_id: str, req: ChooseDealRequest, caller: str = Depends(get_caller)):
    def action(game):
        card = game.choose_deal(caller, req.size)
        return {"card": card.to_dict() if card else None}

    return await _act(room_id, action, req.expected_version)


@app.post("/rooms/{room_id}/deals/resolve", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def resolve_deal(room_id: str, req: ResolveDealRequest, caller: str = Depends(get_caller)):
    return await _act(
        room_id,
        lambda game: game.resolve_deal(caller, req.action, req.quantity),
        req.expected_version,
    )


@app.post("/rooms/{room_id}/assets/transfer", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def transfer_asset(room_id: str, req: TransferAssetRequest, caller: str = Depends(get_caller)):
    return await _act(
        room_id,
        lambda game: game.transfer_asset(caller, req.asset_id, req.target_id),
        req.expected_version,
    )


@app.post("/rooms/{room_id}/assets/sell", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def sell_asset(room_id: str, req: SellAssetRequest, caller: str = Depends(get_caller)):
    return await _act(room_id, lambda game: game.sell_asset(caller, req.asset_id), req.expected_version)


# ---- Bank ----


@app.post("/rooms/{room_id}/take-credit", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def take_credit(room_id: str, req: CreditRequest, caller: str = Depends(get_caller)):
    return await _act(room_id, lambda game: game.take_credit(caller, req.amount).to_dict(), req.expected_version)


@app.post("/rooms/{room_id}/payoff-credit", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def payoff_credit(room_id: str, req: Optional[PayoffRequest] = None, caller: str = Depends(get_caller)):
    req = req or PayoffRequest()
    return await _act(room_id, lambda game: game.payoff_credit(caller, req.amount).to_dict(), req.expected_version)


@app.post("/rooms/{room_id}/transfer", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def transfer(room_id: str, req: TransferRequest, caller: str = Depends(get_caller)):
    return await _act(
        room_id,
        lambda game: game.transfer(caller, req.recipient, req.amount, req.description).to_dict(),
        req.expected_version,
    )



if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=True)
