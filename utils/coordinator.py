"""
Linked-views coordinator.

Wires every registered view to the session's SelectionStore:
- a view's user gesture -> validate -> translate to the configured
  granularity -> SelectionStore.set()
- a store change -> render() on every view

Invalid selections are ignored (the previous selection stays active) and a
view that fails to render never blocks the others.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Optional

from .buckets import UnknownBucketError, bucket_by_name
from .catalog import Catalog
from .selection import (
    LEVEL_BUCKET,
    LEVEL_FIELD,
    LEVEL_SIMULATION,
    InvalidSelectionError,
    Selection,
    SelectionStore,
)

logger = logging.getLogger(__name__)

GRANULARITIES = (LEVEL_SIMULATION, LEVEL_FIELD)


class Coordinator:
    """
    Keeps all views in sync with one SelectionStore.

    Args:
        store: Session-scoped selection store
        catalog: Immutable simulation/field catalog used for validation and
            level translation
        granularity: Level selections are stored at ('simulation' or 'field')
    """

    def __init__(self, store: SelectionStore, catalog: Catalog, granularity: str = LEVEL_SIMULATION):
        if granularity not in GRANULARITIES:
            raise ValueError(f"Granularity must be one of {GRANULARITIES}, got {granularity!r}")

        self._store = store
        self._catalog = catalog
        self._granularity = granularity
        self._views: Dict[str, object] = {}
        # Held for the whole emit -> set -> render sequence of one gesture
        self._lock = threading.RLock()
        self._dispatching = False
        self.last_failures: Dict[str, Exception] = {}
        self._unsubscribe = store.subscribe(self._on_store_change)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def granularity(self) -> str:
        return self._granularity

    @property
    def selection(self) -> Selection:
        return self._store.get()

    @property
    def store(self) -> SelectionStore:
        return self._store

    @property
    def views(self) -> Dict[str, object]:
        return dict(self._views)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------
    def register(self, view) -> None:
        """
        Attach a view: route its gestures here and render it once with the
        current selection.

        Raises:
            ValueError: If a view with the same name is already registered
        """
        if view.name in self._views:
            raise ValueError(f"View '{view.name}' is already registered")

        self._views[view.name] = view
        view.on_user_select(lambda selection, _name=view.name: self.submit(selection, source=_name))

        with self._dispatch():
            self._render_one(view, self._store.get(), self.last_failures)
        logger.debug(f"Registered view '{view.name}'")

    def close(self) -> None:
        """Stop listening to the store (end of session)."""
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Selection entry points
    # ------------------------------------------------------------------
    def submit(self, selection: Selection, source: Optional[str] = None) -> bool:
        """
        Validate, translate and store a selection emitted by a view or control.

        Args:
            selection: Emitted selection (empty selection clears highlighting)
            source: Name of the emitter, for logging

        Returns:
            True if the selection became active, False if it was ignored
        """
        source = source or getattr(selection, 'origin', None) or 'unknown'

        with self._lock:
            if self._dispatching:
                logger.debug(f"Dropped selection from '{source}' emitted while rendering")
                return False

            try:
                resolved = self._resolve(selection)
            except (InvalidSelectionError, UnknownBucketError, TypeError) as e:
                logger.warning(f"Ignored selection from '{source}': {e}")
                return False

            self._store.set(resolved)
            return True

    def select_bucket(self, name: str, origin: str = 'sidebar') -> bool:
        """Select every simulation in a recruitment bucket."""
        try:
            selection = Selection.of_bucket(name, origin=origin)
        except InvalidSelectionError as e:
            logger.warning(f"Ignored selection from '{origin}': {e}")
            return False
        return self.submit(selection, source=origin)

    def clear(self, origin: str = 'reset') -> bool:
        """Clear highlighting in every view."""
        return self.submit(Selection.empty(origin), source=origin)

    def is_current(self, version: int) -> bool:
        """True if no newer selection replaced the one tagged with `version`."""
        return version == self._store.version

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _resolve(self, selection: Selection) -> Selection:
        """Validate a selection and express it at the configured granularity."""
        if not isinstance(selection, Selection):
            raise TypeError(f"Expected Selection, got {type(selection).__name__}")

        if selection.is_empty:
            return selection

        if selection.level == LEVEL_BUCKET:
            bucket = bucket_by_name(selection.bucket)
            selection = Selection.of_bucket(bucket.name, origin=selection.origin)
        else:
            unknown = self._catalog.unknown_ids(selection.level, selection.ids)
            if unknown:
                sample = ', '.join(sorted(unknown)[:5])
                raise InvalidSelectionError(
                    f"{len(unknown)} unknown {selection.level} id(s): {sample}"
                )

        return self._catalog.translate(selection, self._granularity)

    @contextmanager
    def _dispatch(self):
        """Mark a render pass; emissions arriving meanwhile are dropped."""
        with self._lock:
            previous = self._dispatching
            self._dispatching = True
            try:
                yield
            finally:
                self._dispatching = previous

    def _on_store_change(self, selection: Selection) -> None:
        with self._dispatch():
            self._render_all(selection)

    def _render_all(self, selection: Selection) -> None:
        failures: Dict[str, Exception] = {}
        for view in list(self._views.values()):
            self._render_one(view, selection, failures)
        self.last_failures = failures

    def _render_one(self, view, selection: Selection, failures: Dict[str, Exception]) -> None:
        try:
            view.render(selection)
        except Exception as e:
            logger.exception(f"View '{view.name}' failed to render {selection.describe()}")
            failures[view.name] = e
