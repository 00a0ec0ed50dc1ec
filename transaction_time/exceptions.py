"""Exception hierarchy for transaction time correlation."""


class TransactionTimeError(ValueError):
    """Base error for the transaction time filter."""


class InvalidTimestampError(TransactionTimeError):
    """
    Raised when the two timestamps of a transaction cannot be compared or
    subtracted.

    Timestamps must be totally ordered and subtractable (numbers, datetimes
    of the same awareness, ...). Mixing types is a configuration problem with
    `timestamp_tag`, not a per-event condition.
    """

    def __init__(self, uid, first_timestamp, second_timestamp):
        self.uid = uid
        self.first_timestamp = first_timestamp
        self.second_timestamp = second_timestamp
        super().__init__(
            f"Timestamps for transaction {uid!r} are not comparable: "
            f"{type(first_timestamp).__name__} and {type(second_timestamp).__name__}"
        )
