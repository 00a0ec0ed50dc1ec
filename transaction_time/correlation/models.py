"""Correlation configuration and transaction models."""
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Any
from enum import Enum
from ..event_models import Event, TIMESTAMP_FIELD
from ..exceptions import InvalidTimestampError

TRANSACTION_TIME_TAG = "TransactionTime"


class EventSelection(str, Enum):
    """Which recorded event carries (or is decorated with) the result."""
    NONE = "none"
    FIRST = "first"
    LAST = "last"
    OLDEST = "oldest"
    NEWEST = "newest"


class TimestampPolicy(str, Enum):
    """How the primary timestamp of a result event is set."""
    KEEP = "keep"
    OLDEST = "oldest"
    NEWEST = "newest"


class CorrelationConfig(BaseModel):
    """Options of the transaction time filter."""
    model_config = ConfigDict(frozen=True)

    uid_field: str = Field(..., description="Field holding the transaction-unique id")
    timeout: float = Field(default=300, gt=0, description="Seconds before a pending transaction is dropped")
    timestamp_tag: str = Field(default=TIMESTAMP_FIELD, description="Field used as timestamp when calculating the diff")
    replace_timestamp: TimestampPolicy = TimestampPolicy.KEEP
    filter_tag: str | None = Field(default=None, description="Only events carrying this tag are correlated")
    attach_event: EventSelection = EventSelection.NONE
    decorate_event: EventSelection = EventSelection.NONE
    flush_interval: float = Field(default=5, gt=0, description="Seconds between two aging sweeps")

    @field_validator("filter_tag")
    @classmethod
    def validate_filter_tag(cls, v: str | None) -> str | None:
        if v == TRANSACTION_TIME_TAG:
            raise ValueError(f"'{TRANSACTION_TIME_TAG}' is reserved for result events")
        return v

    @model_validator(mode="after")
    def validate_exclusive_modes(self) -> "CorrelationConfig":
        if self.attach_event != EventSelection.NONE and self.decorate_event != EventSelection.NONE:
            raise ValueError("attach_event cannot be used together with decorate_event")
        return self

    @property
    def store_event(self) -> bool:
        """Events are only retained when one of them becomes the result carrier."""
        return self.attach_event != EventSelection.NONE


class Transaction(BaseModel):
    """
    One pending or completed pair of events sharing a uid.

    The first half is recorded by `start`, the second by `complete`. `age` is
    only advanced by the aging sweep of the store holding the transaction.
    """
    uid: Any
    first_timestamp: Any = None
    second_timestamp: Any = None
    first_event: Event | None = None
    last_event: Event | None = None
    age: float = 0
    diff: Any = None

    @classmethod
    def start(cls, uid: Any, timestamp: Any, event: Event | None = None,
              store_event: bool = False) -> "Transaction":
        return cls(
            uid=uid,
            first_timestamp=timestamp,
            first_event=event if store_event else None,
        )

    def complete(self, timestamp: Any, event: Event | None = None, store_event: bool = False):
        """
        Record the second half and calculate the diff.

        Raises:
            InvalidTimestampError: If the timestamps cannot be compared or subtracted
        """
        if store_event:
            self.last_event = event
        self.second_timestamp = timestamp
        self.diff = self._calculate_diff()

    @property
    def is_valid(self) -> bool:
        return self.first_timestamp is not None and self.second_timestamp is not None

    @property
    def oldest_timestamp(self) -> Any:
        if not self.is_valid:
            return None
        return min(self.first_timestamp, self.second_timestamp)

    @property
    def newest_timestamp(self) -> Any:
        if not self.is_valid:
            return None
        return max(self.first_timestamp, self.second_timestamp)

    @property
    def oldest_event(self) -> Event | None:
        # Equal timestamps resolve to the last event for oldest and newest alike
        if not self.is_valid:
            return None
        if self.first_timestamp < self.second_timestamp:
            return self.first_event
        return self.last_event

    @property
    def newest_event(self) -> Event | None:
        if not self.is_valid:
            return None
        if self.first_timestamp > self.second_timestamp:
            return self.first_event
        return self.last_event

    def _calculate_diff(self) -> Any:
        if not self.is_valid:
            return None
        try:
            return self.newest_timestamp - self.oldest_timestamp
        except TypeError as e:
            raise InvalidTimestampError(self.uid, self.first_timestamp, self.second_timestamp) from e
