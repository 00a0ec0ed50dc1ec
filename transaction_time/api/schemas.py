from pydantic import BaseModel
from typing import Any, List, Literal
from ..event_models import Event


class FilterResponse(BaseModel):
    status: Literal["skipped", "pending", "completed"]
    uid: Any = None
    result: Event | None = None


class PendingTransaction(BaseModel):
    uid: Any
    first_timestamp: Any = None
    age: float


class TransactionListResponse(BaseModel):
    total: int
    transactions: List[PendingTransaction]


class FlushResponse(BaseModel):
    expired: int
    pending: int
