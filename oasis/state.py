from datetime import date
from flask import session

RANGE_SESSION_KEY = "reservation_range"


def _parse_day(raw):
    if not raw:
        return None
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(raw)


class ReservationRange:
    """
    The date range the guest picked for a stay.

    Shared between the date picker and the reservation form. Backed by the
    Flask session unless another mapping is passed in.
    """

    def __init__(self, store=None):
        self._store = session if store is None else store

    def _raw(self) -> dict:
        return self._store.get(RANGE_SESSION_KEY) or {}

    @property
    def start(self):
        return _parse_day(self._raw().get("from"))

    @property
    def end(self):
        return _parse_day(self._raw().get("to"))

    @property
    def complete(self) -> bool:
        return bool(self.start and self.end)

    def select(self, start, end=None):
        start = _parse_day(start)
        end = _parse_day(end)
        if start is None:
            raise ValueError("Please choose a start date.")
        if end is not None and end <= start:
            raise ValueError("The end date must be after the start date.")
        self._store[RANGE_SESSION_KEY] = {
            "from": start.isoformat(),
            "to": end.isoformat() if end else None,
        }

    def reset(self):
        self._store.pop(RANGE_SESSION_KEY, None)

    def as_dict(self) -> dict:
        return {"from": self.start, "to": self.end}

