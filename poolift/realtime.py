"""In-process change notification bus.

The store publishes one ChangeEvent per mutated row after it commits. Viewers
subscribe to a single collection scoped by a parent column (for example every
``votes`` row whose ``proposal_id`` is X) and get typed callbacks. Delivery is
at-least-once and best-effort ordered by commit; consumers should re-read
derived state on each event instead of trusting the payload alone.
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
RowCallback = Callable[[Row], None]

INSERT = "insert"
UPDATE = "update"
DELETE = "delete"

# Collections a client may subscribe to, and the parent column that scopes them
SUBSCRIBABLE_SCOPES: dict[str, set[str]] = {
    "families": {"group_id"},
    "birthdays": {"group_id"},
    "parties": {"group_id"},
    "party_celebrants": {"party_id", "birthday_id"},
    "ideas": {"birthday_id"},
    "proposals": {"party_id"},
    "proposal_items": {"proposal_id"},
    "votes": {"proposal_id"},
    "gifts": {"party_id", "share_code"},
    "participants": {"gift_id"},
    "direct_gifts": {"share_code", "id"},
    "direct_gift_participants": {"direct_gift_id"},
}


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    kind: str  # insert | update | delete
    row: Row  # new row for insert/update, old row for delete


@dataclass
class ChangeHandlers:
    on_insert: Optional[RowCallback] = None
    on_update: Optional[RowCallback] = None
    on_delete: Optional[RowCallback] = None

    def for_kind(self, kind: str) -> Optional[RowCallback]:
        return {INSERT: self.on_insert, UPDATE: self.on_update, DELETE: self.on_delete}.get(kind)


ScopeKey = Tuple[str, str, str]


class ChangeBus:
    """Registry of scoped subscriptions. Thread-safe: handlers run in the publishing thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscriptions: Dict[ScopeKey, Dict[int, ChangeHandlers]] = {}

    def subscribe(
        self,
        table: str,
        scope_column: str,
        scope_value: str,
        handlers: ChangeHandlers,
    ) -> Callable[[], None]:
        """Register handlers for one scope. Returns the unsubscribe callable."""
        key = (table, scope_column, str(scope_value))
        with self._lock:
            sub_id = next(self._ids)
            self._subscriptions.setdefault(key, {})[sub_id] = handlers

        def unsubscribe() -> None:
            with self._lock:
                subs = self._subscriptions.get(key)
                if subs is None:
                    return
                subs.pop(sub_id, None)
                if not subs:
                    del self._subscriptions[key]

        return unsubscribe

    def publish(self, events: Iterable[ChangeEvent]) -> None:
        for event in events:
            for callback in self._matching(event):
                try:
                    callback(event.row)
                except Exception:
                    logger.exception("Change handler failed for %s %s", event.kind, event.table)

    def _matching(self, event: ChangeEvent) -> list[RowCallback]:
        callbacks = []
        with self._lock:
            for (table, column, value), subs in self._subscriptions.items():
                if table != event.table or column not in event.row:
                    continue
                if str(event.row[column]) != value:
                    continue
                for handlers in subs.values():
                    callback = handlers.for_kind(event.kind)
                    if callback is not None:
                        callbacks.append(callback)
        return callbacks

    @property
    def subscription_count(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._subscriptions.values())


change_bus = ChangeBus()
