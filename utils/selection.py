"""
Shared selection state for the linked views.

A Selection is an immutable value in one shared vocabulary:
- empty (nothing highlighted)
- a set of simulation ids
- a set of field ids
- a single recruitment bucket

The SelectionStore holds the active Selection for one dashboard session and
notifies its observers synchronously whenever the value changes.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Selection levels
LEVEL_NONE = 'none'
LEVEL_SIMULATION = 'simulation'
LEVEL_FIELD = 'field'
LEVEL_BUCKET = 'bucket'

SELECTION_LEVELS = (LEVEL_NONE, LEVEL_SIMULATION, LEVEL_FIELD, LEVEL_BUCKET)


class InvalidSelectionError(ValueError):
    """Raised when a selection refers to unknown ids or buckets."""


@dataclass(frozen=True)
class Selection:
    """
    Active filter state shared by every view.

    Attributes:
        level: One of 'none', 'simulation', 'field', 'bucket'
        ids: Simulation or field identifiers (empty for 'none'/'bucket')
        bucket: Bucket name when the selection came from (or was derived
            from) a recruitment bucket
        origin: Name of the view or control that emitted the selection
    """
    level: str = LEVEL_NONE
    ids: FrozenSet[str] = frozenset()
    bucket: Optional[str] = None
    origin: Optional[str] = None

    def __post_init__(self):
        if self.level not in SELECTION_LEVELS:
            raise InvalidSelectionError(f"Unknown selection level: {self.level!r}")
        if self.level == LEVEL_BUCKET and not self.bucket:
            raise InvalidSelectionError("Bucket selection requires a bucket name")

    @classmethod
    def empty(cls, origin: Optional[str] = None) -> 'Selection':
        return cls(LEVEL_NONE, frozenset(), None, origin)

    @classmethod
    def of_simulations(cls, ids: Iterable, origin: Optional[str] = None,
                       bucket: Optional[str] = None) -> 'Selection':
        ids = frozenset(str(i) for i in ids)
        if not ids:
            return cls.empty(origin)
        return cls(LEVEL_SIMULATION, ids, bucket, origin)

    @classmethod
    def of_fields(cls, ids: Iterable, origin: Optional[str] = None,
                  bucket: Optional[str] = None) -> 'Selection':
        ids = frozenset(str(i) for i in ids)
        if not ids:
            return cls.empty(origin)
        return cls(LEVEL_FIELD, ids, bucket, origin)

    @classmethod
    def of_bucket(cls, name: str, origin: Optional[str] = None) -> 'Selection':
        return cls(LEVEL_BUCKET, frozenset(), name, origin)

    @property
    def is_empty(self) -> bool:
        """True when nothing should be highlighted."""
        return self.level == LEVEL_NONE

    def describe(self) -> str:
        """Short human-readable summary for captions and logs."""
        if self.is_empty:
            return "No selection"
        if self.level == LEVEL_BUCKET:
            return f"Bucket: {self.bucket}"
        noun = 'simulation' if self.level == LEVEL_SIMULATION else 'field'
        plural = '' if len(self.ids) == 1 else 's'
        text = f"{len(self.ids):,} {noun}{plural}"
        if self.bucket:
            text += f" ({self.bucket} recruitment)"
        return text


Observer = Callable[[Selection], None]


class SelectionStore:
    """
    Session-scoped holder of the active Selection with an observer list.

    set() is atomic with respect to get() and to other set() calls; observers
    run synchronously, inside the lock, after the value has changed. The lock
    is re-entrant so observers may call get() while being notified.
    """

    def __init__(self, initial: Optional[Selection] = None):
        self._lock = threading.RLock()
        self._selection = initial if initial is not None else Selection.empty()
        self._observers: List[Observer] = []
        self._version = 0

    def get(self) -> Selection:
        with self._lock:
            return self._selection

    @property
    def version(self) -> int:
        """Incremented on every set(); used to detect superseded selections."""
        with self._lock:
            return self._version

    def set(self, selection: Selection) -> None:
        """Replace the active selection and notify observers."""
        if not isinstance(selection, Selection):
            raise TypeError(f"Expected Selection, got {type(selection).__name__}")

        with self._lock:
            self._selection = selection
            self._version += 1
            observers = list(self._observers)
            logger.debug(f"Selection v{self._version}: {selection.describe()} (from {selection.origin})")

            for observer in observers:
                try:
                    observer(selection)
                except Exception:
                    logger.exception(f"Selection observer {observer!r} failed")

    def clear(self, origin: Optional[str] = None) -> None:
        """Reset to the empty selection."""
        self.set(Selection.empty(origin))

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register an observer called with every new Selection.

        Returns:
            Callable that removes the observer again
        """
        with self._lock:
            self._observers.append(observer)

        def unsubscribe():
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe
