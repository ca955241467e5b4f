"""Buffered editing of one component's twelve months.

The controller is either idle or editing a single component.  Keystrokes,
pastes and drag-fills only touch the local buffer and set a dirty flag.
Moving to another component, switching year, :meth:`commit` and
:meth:`close` are the only points where buffered changes leave the
controller: a copy of the buffer is handed to a thread pool which writes it
to the store while the user carries on.  Writes for the same component,
year and value kind run one after another, and reopening a component waits
for its pending write before reading the store.  A failed write is logged and
nothing else; the buffer is not restored and the write is not retried.

The store is anything with ``get_period_values``/``upsert_period_values``
(or the ``actual`` equivalents) and ``get_notes``/``upsert_notes``, such as
:class:`budget_planner.db.BudgetStore`.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .clipboard import ParsedClipboard, paste_preview, parse_clipboard_row
from .config import FLUSH_WORKERS
from .errors import PersistenceError, ValidationError
from .expressions import parse_cell_value
from .fill import fill_range, resolve_target_slot
from .models import MONTHS, validate_month

logger = logging.getLogger(__name__)

IDLE = 'idle'
EDITING = 'editing'

BUDGET = 'budget'
ACTUAL = 'actual'

# (component id, year, value kind)
FlushKey = Tuple[int, int, str]


@dataclass
class FillGesture:
    source: int
    target: int


@dataclass(frozen=True)
class PastePreview:
    parsed: ParsedClipboard
    start_month: int
    affected_months: List[int]

    @property
    def warnings(self) -> List[str]:
        return list(self.parsed.errors)


class EditSessionController:
    """State machine around the edit buffer of the selected component."""

    def __init__(
        self,
        store: Any,
        year: int,
        value_kind: str = BUDGET,
        executor: Optional[Executor] = None,
        on_flushed: Optional[Callable[[int, int], None]] = None,
    ):
        if value_kind not in (BUDGET, ACTUAL):
            raise ValidationError(f"value_kind must be {BUDGET!r} or {ACTUAL!r}")
        self.store = store
        self.year = int(year)
        self.value_kind = value_kind
        self.on_flushed = on_flushed
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=FLUSH_WORKERS, thread_name_prefix='budget-flush'
        )
        self._pending: Dict[FlushKey, Future] = {}
        self._pending_lock = threading.Lock()

        self.entity_id: Optional[int] = None
        self.values: Dict[int, float] = {}
        self.notes: Dict[int, str] = {}
        self.dirty = False
        self.notes_dirty = False
        self.gesture: Optional[FillGesture] = None

    @property
    def state(self) -> str:
        return IDLE if self.entity_id is None else EDITING

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin_edit(self, entity_id: int) -> Optional[Future]:
        """Start editing ``entity_id``, flushing the previous component if it changed.

        Returns the future of that flush, or ``None`` when nothing was dirty.
        """
        if self.entity_id == entity_id:
            return None
        future = self._leave()
        self.entity_id = entity_id
        self._load()
        return future

    def set_year(self, year: int) -> None:
        year = int(year)
        if year == self.year:
            return
        entity_id = self.entity_id
        self._leave()
        self.year = year
        if entity_id is not None:
            self.entity_id = entity_id
            self._load()

    def commit(self) -> Optional[Future]:
        """Save and return to idle; the returned future completes when the write does."""
        return self._leave()

    def discard(self) -> None:
        """Drop buffered changes without writing them and return to idle."""
        self.gesture = None
        self._reset()

    def close(self) -> None:
        """Best-effort final flush, then wait for every pending write."""
        self._leave()
        self.wait_for_flushes()
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _leave(self) -> Optional[Future]:
        # A drag in progress is abandoned, never half-applied.
        self.gesture = None
        future = None
        if self.entity_id is not None and (self.dirty or self.notes_dirty):
            future = self._dispatch_flush()
        self._reset()
        return future

    def _reset(self) -> None:
        self.entity_id = None
        self.values = {}
        self.notes = {}
        self.dirty = False
        self.notes_dirty = False

    def _load(self) -> None:
        self._await_pending(self._flush_key(self.entity_id, self.year))
        if self.value_kind == ACTUAL:
            stored = self.store.get_actual_values(self.year)
        else:
            stored = self.store.get_period_values(self.year)
        current = stored.get(self.entity_id, {})
        self.values = {month: float(current.get(month, 0.0) or 0.0) for month in MONTHS}
        self.notes = dict(self.store.get_notes(self.year).get(self.entity_id, {}))
        self.dirty = False
        self.notes_dirty = False

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def _require_editing(self) -> None:
        if self.entity_id is None:
            raise ValidationError("No component is being edited")

    def apply_keystroke(self, month: int, raw_text: str) -> float:
        """Commit typed text (number or expression) into ``month``; returns the stored amount."""
        self._require_editing()
        month = validate_month(month)
        amount = parse_cell_value(raw_text or '')
        self.values[month] = amount
        self.dirty = True
        return amount

    def set_note(self, month: int, text: str) -> None:
        self._require_editing()
        month = validate_month(month)
        self.notes[month] = text or ''
        self.notes_dirty = True

    def preview_paste(self, raw_clipboard_text: str, anchor_month: int) -> PastePreview:
        """Parse a paste without applying it, for a confirm step."""
        anchor_month = validate_month(anchor_month)
        parsed = parse_clipboard_row(raw_clipboard_text)
        return PastePreview(parsed, anchor_month, sorted(parsed.to_monthly(anchor_month)))

    def paste_preview_frame(self, preview: PastePreview):
        return paste_preview(preview.parsed, preview.start_month, self.values)

    def apply_paste(self, raw_clipboard_text: str, anchor_month: int) -> ParsedClipboard:
        """Write pasted values into consecutive months from ``anchor_month``.

        Cells that failed to parse are written as 0; their messages are in
        the returned ``errors``.  An empty paste changes nothing.
        """
        self._require_editing()
        preview = self.preview_paste(raw_clipboard_text, anchor_month)
        monthly = preview.parsed.to_monthly(preview.start_month)
        if monthly:
            self.values.update(monthly)
            self.dirty = True
        return preview.parsed

    def apply_fill_drag(self, source_month: int, target_month: int) -> bool:
        """Copy the source month's value over the inclusive range; False when nothing changed."""
        self._require_editing()
        filled = fill_range(self.values, source_month, target_month)
        if filled is None:
            return False
        self.values = filled
        self.dirty = True
        return True

    def start_fill(self, month: int) -> None:
        self._require_editing()
        month = validate_month(month)
        self.gesture = FillGesture(source=month, target=month)

    def drag_to(self, pointer: float, slot_bounds: Sequence[Tuple[float, float]]) -> Optional[int]:
        """Move the drag target to the month column nearest ``pointer``."""
        if self.gesture is None:
            return None
        self.gesture.target = resolve_target_slot(pointer, slot_bounds, default=self.gesture.source)
        return self.gesture.target

    def end_fill(self) -> bool:
        gesture, self.gesture = self.gesture, None
        if gesture is None:
            return False
        return self.apply_fill_drag(gesture.source, gesture.target)

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    def _flush_key(self, entity_id: int, year: int) -> FlushKey:
        return entity_id, year, self.value_kind

    def _await_pending(self, key: FlushKey) -> None:
        with self._pending_lock:
            pending = self._pending.get(key)
        if pending is not None:
            wait([pending])

    def _dispatch_flush(self) -> Future:
        entity_id = self.entity_id
        year = self.year
        key = self._flush_key(entity_id, year)
        values = dict(self.values) if self.dirty else None
        notes = dict(self.notes) if self.notes_dirty else None
        with self._pending_lock:
            previous = self._pending.get(key)
            future = self._executor.submit(self._flush, entity_id, year, values, notes, previous)
            self._pending[key] = future
        future.add_done_callback(partial(self._flush_done, key))
        return future

    def _flush(
        self,
        entity_id: int,
        year: int,
        values: Optional[Dict[int, float]],
        notes: Optional[Dict[int, str]],
        previous: Optional[Future] = None,
    ) -> Tuple[int, int]:
        # Writes for one key land in dispatch order.
        if previous is not None:
            wait([previous])
        try:
            if values is not None:
                if self.value_kind == ACTUAL:
                    self.store.upsert_actual_values(entity_id, year, values)
                else:
                    self.store.upsert_period_values(entity_id, year, values)
            if notes is not None:
                self.store.upsert_notes(entity_id, year, notes)
        except Exception as exc:
            raise PersistenceError(
                f"Failed to save component {entity_id} for {year}: {exc}", entity_id=entity_id, year=year
            ) from exc
        return entity_id, year

    def _flush_done(self, key: FlushKey, future: Future) -> None:
        with self._pending_lock:
            if self._pending.get(key) is future:
                del self._pending[key]
        exc = future.exception()
        if exc is not None:
            logger.error("Error saving values: %s", exc, exc_info=exc)
            return
        entity_id, year = future.result()
        logger.debug("Saved component %s for %s", entity_id, year)
        if self.on_flushed is not None:
            try:
                self.on_flushed(entity_id, year)
            except Exception:
                logger.exception("on_flushed callback failed for component %s", entity_id)

    @property
    def pending_flushes(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def wait_for_flushes(self, timeout: Optional[float] = None) -> List[Future]:
        """Block until dispatched writes finish; returns the futures that completed.

        Only the newest write per key is tracked; it finishes after every
        earlier write for that key.
        """
        with self._pending_lock:
            pending = list(self._pending.values())
        if not pending:
            return []
        done, _not_done = wait(pending, timeout=timeout)
        return list(done)
