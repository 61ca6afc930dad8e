"""Shared fixtures for the datagrid-view test suite."""

from typing import Callable

import pytest

from datagrid_view.models import ColumnDef
from datagrid_view.rows import Row


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGestureHost:
    """Records bind/unbind calls and exposes the bound callbacks."""

    def __init__(self) -> None:
        self.bound = 0
        self.unbound = 0
        self.on_move: Callable[[float], None] | None = None
        self.on_release: Callable[[], None] | None = None

    def bind(self, on_move, on_release):
        self.bound += 1
        self.on_move = on_move
        self.on_release = on_release

        def unbind() -> None:
            self.unbound += 1

        return unbind


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gesture_host() -> FakeGestureHost:
    return FakeGestureHost()


@pytest.fixture
def people_columns() -> list[ColumnDef]:
    return [
        ColumnDef(header_name="Name"),
        ColumnDef(header_name="Email"),
        ColumnDef(header_name="Role"),
    ]


@pytest.fixture
def people_rows() -> list[Row]:
    return [
        Row(cells=["Ava", "ava@example.com", "Admin"], row_id=1),
        Row(cells=["Liam", "liam@example.com", "Editor"], row_id=2),
        Row(cells=["Mia", "mia@example.com", "Admin"], row_id=3),
    ]


@pytest.fixture
def recorder():
    """Listener collecting emitted events."""

    class Recorder:
        def __init__(self) -> None:
            self.events = []

        def __call__(self, event) -> None:
            self.events.append(event)

        def names(self) -> list[str]:
            return [event.name for event in self.events]

        def last(self, name: str):
            matching = [event for event in self.events if event.name == name]
            return matching[-1] if matching else None

    return Recorder()
