"""
In-memory application state and reducers.

State lives for the duration of a session only. Reducers are pure and total:
they never mutate their input and accept ids that are not present.
"""

from dataclasses import dataclass, replace
from enum import Enum

from .models import Cifra, SheetMusic


class Tab(str, Enum):
    PARTITURAS = "partituras"
    CIFRAS = "cifras"


@dataclass(frozen=True)
class AppState:
    sheets: tuple[SheetMusic, ...] = ()
    cifras: tuple[Cifra, ...] = ()
    active_tab: Tab = Tab.PARTITURAS


def add_sheet(state: AppState, sheet: SheetMusic) -> AppState:
    return replace(state, sheets=state.sheets + (sheet,))


def remove_sheet(state: AppState, sheet_id: str) -> AppState:
    return replace(state, sheets=tuple(s for s in state.sheets if s.id != sheet_id))


def upsert_cifra(state: AppState, cifra: Cifra) -> AppState:
    """Replace the first cifra with the same id, or append it."""
    for i, existing in enumerate(state.cifras):
        if existing.id == cifra.id:
            cifras = state.cifras[:i] + (cifra,) + state.cifras[i + 1:]
            return replace(state, cifras=cifras)
    return replace(state, cifras=state.cifras + (cifra,))


def remove_cifra(state: AppState, cifra_id: str) -> AppState:
    return replace(state, cifras=tuple(c for c in state.cifras if c.id != cifra_id))


def set_tab(state: AppState, tab: Tab) -> AppState:
    return replace(state, active_tab=Tab(tab))


def find_sheet(state: AppState, sheet_id: str) -> SheetMusic | None:
    return next((s for s in state.sheets if s.id == sheet_id), None)


def find_cifra(state: AppState, cifra_id: str) -> Cifra | None:
    return next((c for c in state.cifras if c.id == cifra_id), None)


def resolve_locator(state: AppState, locator: str) -> bytes | None:
    """Return the bytes behind a sheet locator, or None once the sheet is gone."""
    for sheet in state.sheets:
        if sheet.locator == locator:
            return sheet.data
    return None
