from fastapi import APIRouter, HTTPException, Query
from .schemas import FilterResponse, PendingTransaction, TransactionListResponse, FlushResponse
from ..correlation import CorrelationConfig
from ..event_models import Event
from ..exceptions import InvalidTimestampError
from ..services.pipeline import transaction_filter
from ..streaming.websocket import stream_manager

router = APIRouter(prefix="/v1")


@router.post("/events", response_model=FilterResponse)
async def filter_event(event: Event):
    """
    Correlate one event.

    The first event of a transaction is held as pending; the second one
    completes it and the result event is returned and broadcast on /ws.
    """
    try:
        status, result = transaction_filter.process(event)
    except InvalidTimestampError as e:
        raise HTTPException(422, detail=str(e))

    if status == "skipped":
        return FilterResponse(status=status)

    uid = transaction_filter.extract_uid(event)
    if result is None:
        return FilterResponse(status=status, uid=uid)

    await stream_manager.broadcast_result(result)
    return FilterResponse(status="completed", uid=uid, result=result)


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(limit: int = Query(default=100, ge=1, le=10000)):
    """List pending transactions, oldest first."""
    pending = sorted(transaction_filter.store.pending(), key=lambda t: t.age, reverse=True)
    items = [
        PendingTransaction(uid=t.uid, first_timestamp=t.first_timestamp, age=t.age)
        for t in pending[:limit]
    ]
    return TransactionListResponse(total=len(pending), transactions=items)


@router.post("/transactions/flush", response_model=FlushResponse)
async def flush_transactions(elapsed: float | None = Query(default=None, ge=0)):
    """Run one aging sweep. Expired transactions are dropped without output."""
    expired = transaction_filter.flush(elapsed)
    return FlushResponse(expired=expired, pending=transaction_filter.pending_count)


@router.get("/config", response_model=CorrelationConfig)
async def get_config():
    return transaction_filter.config
