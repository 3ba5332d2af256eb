from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SeatRequest(BaseModel):
    player_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=64)
    monthly_income: Optional[int] = Field(default=None, ge=0)
    monthly_expenses: Optional[int] = Field(default=None, ge=0)
    starting_cash: Optional[int] = None


class CreateRoomRequest(BaseModel):
    players: List[SeatRequest] = Field(..., min_length=1, max_length=8)
    seed: Optional[int] = None
    credit_formula: Optional[str] = Field(default=None, pattern=r"^(income_multiple|cashflow_hundreds)$")


class CreateRoomResponse(BaseModel):
    room_id: str
    version: int
    state: Dict[str, Any]


class VersionedRequest(BaseModel):
    """Every mutating request may pin the room version it was built against."""

    expected_version: Optional[int] = Field(default=None, ge=0)


class RollRequest(VersionedRequest):
    dice_count: Optional[int] = Field(default=None, ge=1)


class ChooseDealRequest(VersionedRequest):
    size: str = Field(..., pattern=r"^(big|small)$")


class ResolveDealRequest(VersionedRequest):
    action: str = Field(..., pattern=r"^(buy|pass)$")
    quantity: Optional[int] = Field(default=None, ge=1)


class TransferAssetRequest(VersionedRequest):
    asset_id: str
    target_id: str


class SellAssetRequest(VersionedRequest):
    asset_id: str


class CreditRequest(VersionedRequest):
    amount: int


class PayoffRequest(VersionedRequest):
    amount: Optional[int] = None


class TransferRequest(VersionedRequest):
    recipient: str
    amount: int
    description: str = ""


class ActionResponse(BaseModel):
    ok: bool = True
    version: int
    result: Any = None
    state: Dict[str, Any]


class ErrorResponse(BaseModel):
    kind: str
    message: str
