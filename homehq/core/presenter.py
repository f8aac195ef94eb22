"""
Rendering handler results for consumers.

``render_result`` is what the HTTP routes return. ``ViewState`` and
``OptimisticList`` are the consumer-side helpers: the first tracks the
pending / error / success state of one call, the second applies a change
locally before the handler confirms it and falls back to the last server
state when it does not.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from homehq.core.results import ApiError, status_for

logger = logging.getLogger(__name__)

PENDING = "pending"
ERROR = "error"
SUCCESS = "success"
IDLE = "idle"


def render_result(result, success_status: int = 200) -> JSONResponse:
    if result.is_ok:
        return JSONResponse(status_code=success_status, content=result.to_dict())
    return JSONResponse(status_code=status_for(result.error.code), content=result.to_dict())


class ViewState:
    """State of one user-triggered call: idle -> pending -> success | error."""

    def __init__(self):
        self.phase = IDLE
        self.data: Any = None
        self.error: Optional[ApiError] = None
        self._last_call: Optional[Callable[[], Any]] = None

    @property
    def is_pending(self) -> bool:
        return self.phase == PENDING

    def run(self, handler: Callable[..., Any], *args, **kwargs):
        self._last_call = lambda: handler(*args, **kwargs)
        return self._execute()

    def retry(self):
        if self._last_call is None:
            raise RuntimeError("Nothing to retry")
        return self._execute()

    def _execute(self):
        self.phase = PENDING
        self.error = None
        result = self._last_call()
        if result.is_ok:
            self.phase = SUCCESS
            self.data = result.data
        else:
            self.phase = ERROR
            self.error = result.error
        return result


class OptimisticList:
    """Local copy of a list of rows with optimistic edits.

    ``server_items`` is the last state confirmed by the server; ``items`` is
    what the consumer shows, including edits still in flight.
    """

    def __init__(self, rows: List[Dict[str, Any]], key: str = "id"):
        self.key = key
        self.server_items: Dict[str, Dict[str, Any]] = {r[key]: copy.deepcopy(r) for r in rows}
        self.items: Dict[str, Dict[str, Any]] = copy.deepcopy(self.server_items)

    def get(self, item_id: str) -> Dict[str, Any]:
        return self.items[item_id]

    def as_list(self) -> List[Dict[str, Any]]:
        return list(self.items.values())

    def commit(self, item_id: str, changes: Dict[str, Any], handler: Callable[[], Any]):
        """Apply ``changes`` locally, call ``handler`` and reconcile or roll back."""
        self.items[item_id] = {**self.items[item_id], **changes}
        result = handler()
        if result.is_ok:
            row = jsonable_encoder(result.data)
            if isinstance(row, dict) and row.get(self.key) == item_id:
                self.server_items[item_id] = {**self.server_items[item_id], **row}
            else:
                self.server_items[item_id] = {**self.server_items[item_id], **changes}
            self.items[item_id] = copy.deepcopy(self.server_items[item_id])
        else:
            logger.info("Rolling back %s after %s", item_id, result.error.code)
            self.items[item_id] = copy.deepcopy(self.server_items[item_id])
        return result

    def toggle(self, item_id: str, field: str, handler: Callable[[bool], Any]):
        """Flip a boolean field; ``handler`` receives the new value."""
        value = not self.items[item_id].get(field, False)
        return self.commit(item_id, {field: value}, lambda: handler(value))
