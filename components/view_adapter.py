"""
Base class for the linked views (scatter plot, table, map).

Every view:
- renders itself from a Selection by recomputing emphasis only
  (no data reload); rendering is idempotent
- turns a widget event payload into a Selection through ONE delegated
  handler (handle_event), never one handler per row/point/polygon
- draws its current state with Streamlit, wiring the widget's on_select
  callback back to handle_event
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, List, Optional, Tuple

from utils.catalog import Catalog
from utils.selection import LEVEL_SIMULATION, Selection

logger = logging.getLogger(__name__)

SelectCallback = Callable[[Selection], Any]


@dataclass(frozen=True)
class ViewState:
    """
    Visible state of a view after render().

    Attributes:
        highlighted: Ids emphasized in this view
        order: Element ids in display order (row/point/polygon index -> id)
        emphasis: Per-element style value aligned with `order`
            (opacity for plots, bool for table rows, RGBA for polygons)
        selection_active: False when nothing is selected (neutral styling)
        caption: Short description of the active selection
    """
    highlighted: FrozenSet[str]
    order: Tuple[str, ...]
    emphasis: Tuple[Any, ...]
    selection_active: bool
    caption: str = ''


def event_value(payload: Any, key: str, default: Any = None) -> Any:
    """
    Read a key from a Streamlit event payload.

    Streamlit returns attribute dictionaries; tests pass plain dicts.
    Both are supported.
    """
    if payload is None:
        return default
    try:
        return payload[key]
    except (KeyError, TypeError, IndexError):
        return getattr(payload, key, default)


def event_selection(payload: Any) -> Any:
    """Unwrap {'selection': {...}} when given a full widget event."""
    inner = event_value(payload, 'selection')
    return inner if inner is not None else payload


class ViewAdapter(ABC):
    """
    Capability contract shared by Plot, Table and Map.

    Args:
        name: Unique view name (prefix of the Streamlit widget key)
        catalog: Immutable data the view displays
    """

    level = LEVEL_SIMULATION

    def __init__(self, name: str, catalog: Catalog):
        self.name = name
        self.catalog = catalog
        self._callbacks: List[SelectCallback] = []
        self._rendering = False
        self._selection: Selection = Selection.empty()
        self._widget_generation = 0
        self.view_state: Optional[ViewState] = None

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------
    def render(self, selection: Selection) -> None:
        """Recompute emphasis for `selection` without reloading data."""
        self._rendering = True
        try:
            highlighted = self.catalog.project(selection, self.level)
            self.view_state = self.compute_state(selection, highlighted)
            if selection != self._selection and selection.origin != self.name:
                # The widget still holds its own last gesture; a new key drops it
                self._widget_generation += 1
            self._selection = selection
        finally:
            self._rendering = False

    def on_user_select(self, callback: SelectCallback) -> None:
        """Register the handler invoked after a user selection gesture."""
        self._callbacks.append(callback)

    def handle_event(self, payload: Any) -> Selection:
        """
        Delegated gesture handler: build a Selection from the widget event
        and emit it. A gesture hitting no element emits the empty Selection.
        """
        selection = self.selection_from_event(payload)
        self._emit(selection)
        return selection

    @property
    def highlighted(self) -> FrozenSet[str]:
        return self.view_state.highlighted if self.view_state else frozenset()

    @property
    def widget_key(self) -> str:
        """Streamlit key of the widget; changes when another source takes over."""
        return f"{self.name}_{self._widget_generation}"

    @property
    def current_selection(self) -> Selection:
        return self._selection

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def compute_state(self, selection: Selection, highlighted: FrozenSet[str]) -> ViewState:
        """Pure function of the selection; must not emit."""

    @abstractmethod
    def selection_from_event(self, payload: Any) -> Selection:
        """Map a widget event payload to a Selection in the shared vocabulary."""

    @abstractmethod
    def draw(self) -> None:
        """Draw the current view_state with Streamlit."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _emit(self, selection: Selection) -> None:
        if self._rendering:
            # Widgets echoing their own re-render are not user gestures
            logger.debug(f"View '{self.name}' suppressed emission during render")
            return
        for callback in list(self._callbacks):
            callback(selection)

    def _ids_from_positions(self, positions) -> List[str]:
        """Resolve element positions against the last rendered order."""
        order = self.view_state.order if self.view_state else ()
        ids = []
        for pos in positions or []:
            try:
                ids.append(order[int(pos)])
            except (IndexError, TypeError, ValueError):
                logger.debug(f"View '{self.name}' ignored out-of-range position {pos!r}")
        return ids

    def _on_widget_select(self) -> None:
        """Streamlit on_select callback: read the widget event from session state."""
        import streamlit as st
        self.handle_event(st.session_state.get(self.widget_key))
