"""Column Transform Manager: reorder, resize and pin.

Gestures are explicit sessions.  A :class:`ResizeSession` or
:class:`DragSession` is opened by the coordinator, fed pointer positions
by the rendering surface, and closed by ``end``/``drop``/``cancel`` or by
:meth:`ColumnTransformManager.release_all` on teardown.  When the surface
provides a :class:`GestureHost`, the session binds the host's global
move/release listeners on open and unbinds them exactly once on close.

Sessions track their column by key, so a reorder in the middle of a
gesture cannot redirect it to another column.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from datagrid_view.columns import ColumnRegistry, PinSide

logger = logging.getLogger(__name__)

_CLICK_SUPPRESS_SECONDS: float = 0.22


class GestureHost(Protocol):
    """Binds global pointer listeners for the lifetime of a gesture."""

    def bind(
        self,
        on_move: Callable[[float], None],
        on_release: Callable[[], None],
    ) -> Callable[[], None]:
        """Start delivering moves/releases; returns the unbind callable."""
        ...


# ---------------------------------------------------------------------------
# Pinning
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PinnedColumn:
    index: int
    key: str
    side: PinSide
    offset: int
    edge: bool


@dataclass(frozen=True)
class PinLayout:
    """Pinned columns with their edge offsets.

    ``left`` runs left-to-right from the leading edge; ``right`` runs
    right-to-left from the trailing edge.  The last entry of each group is
    the edge column.
    """

    left: tuple[PinnedColumn, ...] = ()
    right: tuple[PinnedColumn, ...] = ()

    def for_index(self, index: int) -> PinnedColumn | None:
        for pinned in self.left + self.right:
            if pinned.index == index:
                return pinned
        return None

    def spec(self) -> str:
        return format_pin_spec([p.key for p in self.left], [p.key for p in self.right])


def _pin_tokens(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    if value is None:
        return []
    return [token.strip() for token in str(value).split(",") if token.strip()]


def parse_pin_spec(raw: Any, registry: ColumnRegistry) -> tuple[list[int], list[int]]:
    """Resolve a pin spec to display indices.

    Accepts ``"left:a,b;right:c"``, its JSON form ``{"left": [...],
    "right": [...]}`` (as text or a dict).  Unresolvable tokens are dropped;
    a column pinned on both sides stays left.

    Returns:
        ``(left, right)``: left ascending by display index, right
        descending (the right-most column first).
    """
    left: set[int] = set()
    right: set[int] = set()

    def assign(target: set[int], values: list[str]) -> None:
        for value in values:
            index = registry.resolve(value)
            if index >= 0:
                target.add(index)
            else:
                logger.debug("[TableView] pin-columns: dropping unknown column %r", value)

    parsed: Any = raw
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            parsed = None
    if isinstance(parsed, dict):
        assign(left, _pin_tokens(parsed.get("left")))
        assign(right, _pin_tokens(parsed.get("right")))
    elif isinstance(raw, str):
        for segment in raw.split(";"):
            side, _, values = segment.partition(":")
            side = side.strip().lower()
            if side == "left":
                assign(left, _pin_tokens(values))
            elif side == "right":
                assign(right, _pin_tokens(values))

    return sorted(left), sorted((i for i in right if i not in left), reverse=True)


def format_pin_spec(left: list[str], right: list[str]) -> str:
    """``(["a", "b"], ["c"])`` -> ``"left:a,b;right:c"`` (empty sides omitted)."""
    segments = []
    if left:
        segments.append("left:" + ",".join(left))
    if right:
        segments.append("right:" + ",".join(right))
    return ";".join(segments)


def compute_pin_layout(registry: ColumnRegistry, left: list[int], right: list[int]) -> PinLayout:
    """Cumulative offsets: each pinned column sits after the widths pinned before it."""

    def build(indices: list[int], side: PinSide) -> tuple[PinnedColumn, ...]:
        pinned: list[PinnedColumn] = []
        offset = 0
        for position, index in enumerate(indices):
            pinned.append(
                PinnedColumn(
                    index=index,
                    key=registry.key_at(index) or "",
                    side=side,
                    offset=max(0, int(round(offset))),
                    edge=position == len(indices) - 1,
                )
            )
            offset += registry.resolve_width(index)
        return tuple(pinned)

    return PinLayout(left=build(left, "left"), right=build(right, "right"))


# ---------------------------------------------------------------------------
# Gesture sessions
# ---------------------------------------------------------------------------

class _Session:
    """Shared bookkeeping: host binding and the single-close guarantee."""

    def __init__(self, manager: "ColumnTransformManager") -> None:
        self._manager = manager
        self._unbind: Callable[[], None] | None = None
        self.active = True

    def _bind(self, host: GestureHost | None) -> None:
        if host is not None:
            self._unbind = host.bind(self._on_host_move, self._on_host_release)

    def _close(self) -> bool:
        if not self.active:
            return False
        self.active = False
        unbind, self._unbind = self._unbind, None
        try:
            if unbind is not None:
                unbind()
        finally:
            self._manager._forget(self)
        return True

    def _on_host_move(self, position: float) -> None:
        pass

    def _on_host_release(self) -> None:
        pass

    def release(self) -> None:
        """Teardown: close without committing."""
        self._close()


class ResizeSession(_Session):
    """Pointer-driven resize of one column.

    Usable as a context manager; leaving the block ends the session
    (commits) or cancels it when the block raised.
    """

    def __init__(
        self,
        manager: "ColumnTransformManager",
        column_key: str,
        start_offset: float,
        start_width: int,
        *,
        rtl: bool,
        on_preview: Callable[[str, int], None],
        on_commit: Callable[[str, int], None],
    ) -> None:
        super().__init__(manager)
        self.column_key = column_key
        self.start_offset = start_offset
        self.start_width = start_width
        self.width = start_width
        self._cached_at_start = manager.registry.cached_width(column_key)
        self._rtl = rtl
        self._on_preview = on_preview
        self._on_commit = on_commit

    def width_for(self, offset: float) -> float:
        """``start_width + delta``, with the delta sign flipped under RTL."""
        delta = offset - self.start_offset
        if self._rtl:
            delta = -delta
        return self.start_width + delta

    def move(self, offset: float) -> int | None:
        """Preview the width for pointer *offset* without notifying."""
        if not self.active:
            return None
        self.width = self._manager.apply_width(self.column_key, self.width_for(offset))
        self._on_preview(self.column_key, self.width)
        return self.width

    def end(self, offset: float | None = None) -> int | None:
        """Commit the gesture.  A second ``end`` (pointer-up twice) is a no-op."""
        if not self.active:
            return None
        if offset is not None:
            self.width = self._manager.apply_width(self.column_key, self.width_for(offset))
        self._close()
        self._on_commit(self.column_key, self.width)
        return self.width

    def cancel(self) -> None:
        """Abort and restore the width the column had when the gesture began."""
        if self._close():
            width = self._manager.apply_width(self.column_key, self.start_width)
            self._on_preview(self.column_key, width)

    def release(self) -> None:
        """Teardown: close and drop any previewed width that was never committed."""
        if self._close():
            self._manager.registry.restore_width(self.column_key, self._cached_at_start)

    def _on_host_move(self, position: float) -> None:
        self.move(position)

    def _on_host_release(self) -> None:
        self.end()

    def __enter__(self) -> "ResizeSession":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            self.cancel()
        else:
            self.end()


class DragSession(_Session):
    """Header drag-to-reorder gesture."""

    def __init__(
        self,
        manager: "ColumnTransformManager",
        column_key: str,
        on_drop: Callable[[int, int], bool],
    ) -> None:
        super().__init__(manager)
        self.column_key = column_key
        self._on_drop = on_drop
        self.over_index: int | None = None

    @property
    def source_index(self) -> int:
        return self._manager.registry.index_of_key(self.column_key)

    def over(self, index: int) -> None:
        """Track the header currently under the pointer (drop-target marker)."""
        if self.active and 0 <= index < len(self._manager.registry):
            self.over_index = index

    def drop(self, target_index: int | None = None) -> bool:
        """Move the dragged column to *target_index* (default: last ``over``)."""
        if not self.active:
            return False
        target = self.over_index if target_index is None else target_index
        source = self.source_index
        self._close()
        self._manager.suppress_activation()
        if target is None or source < 0:
            return False
        return self._on_drop(source, target)

    def cancel(self) -> None:
        self._close()


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class ColumnTransformManager:
    """Applies interactive column transforms to a :class:`ColumnRegistry`."""

    def __init__(
        self,
        registry: ColumnRegistry,
        *,
        gesture_host: GestureHost | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self.gesture_host = gesture_host
        self._clock = clock
        self._sessions: list[_Session] = []
        self._ignore_activation_until = 0.0

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    # -- reorder --

    def move(self, source_index: int, target_index: int) -> bool:
        return self.registry.move(source_index, target_index)

    @staticmethod
    def keyboard_target(index: int, key: str, count: int, *, rtl: bool) -> int | None:
        """Header index an ArrowLeft/ArrowRight from *index* points at.

        Under RTL the visual meaning of the arrows flips.  Returns ``None``
        for other keys.
        """
        if key not in ("ArrowLeft", "ArrowRight"):
            return None
        right_delta = -1 if rtl else 1
        delta = right_delta if key == "ArrowRight" else -right_delta
        return max(0, min(count - 1, index + delta))

    # -- activation suppression --

    def suppress_activation(self) -> None:
        """Swallow the header activation that immediately follows a move."""
        self._ignore_activation_until = self._clock() + _CLICK_SUPPRESS_SECONDS

    def activation_suppressed(self) -> bool:
        return self._clock() < self._ignore_activation_until

    # -- resize --

    def apply_width(self, column_key: str, width: float) -> int:
        """Clamp and cache *width* for *column_key*; returns the stored width."""
        index = self.registry.index_of_key(column_key)
        stored = self.registry.set_width(index, width)
        return stored if stored is not None else int(round(width))

    def begin_resize(
        self,
        index: int,
        start_offset: float,
        *,
        rtl: bool,
        on_preview: Callable[[str, int], None],
        on_commit: Callable[[str, int], None],
    ) -> ResizeSession | None:
        key = self.registry.key_at(index)
        if key is None:
            return None
        session = ResizeSession(
            self,
            key,
            start_offset,
            self.registry.resolve_width(index),
            rtl=rtl,
            on_preview=on_preview,
            on_commit=on_commit,
        )
        self._sessions.append(session)
        session._bind(self.gesture_host)
        return session

    # -- drag --

    def begin_drag(self, index: int, on_drop: Callable[[int, int], bool]) -> DragSession | None:
        key = self.registry.key_at(index)
        if key is None:
            return None
        session = DragSession(self, key, on_drop)
        self._sessions.append(session)
        session._bind(self.gesture_host)
        return session

    # -- teardown --

    def release_all(self) -> int:
        """Close every open session without committing; returns how many were open."""
        sessions = list(self._sessions)
        for session in sessions:
            session.release()
        return len(sessions)

    def _forget(self, session: _Session) -> None:
        if session in self._sessions:
            self._sessions.remove(session)

    # -- pin --

    def pin_layout(self, spec: Any) -> PinLayout:
        left, right = parse_pin_spec(spec, self.registry)
        return compute_pin_layout(self.registry, left, right)
