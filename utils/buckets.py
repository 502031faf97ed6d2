"""
Recruitment-rate buckets.

Partitions the continuous recruitment success rate (0-1) into ordered,
named ranges used as an alternate selection source (sidebar radio).

Buckets:
- Low:     [0.00, 0.33)
- Medium:  [0.33, 0.66)
- High:    [0.66, 0.90)
- Perfect: [0.90, 1.00]  (upper bound inclusive)
"""
import math
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Set, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

RATE_COLUMN = 'recruitment_rate'


class UnknownBucketError(KeyError):
    """Raised when a bucket name is not part of the bucket table."""


@dataclass(frozen=True)
class Bucket:
    """A named half-open rate range. The last bucket closes its upper bound."""
    name: str
    lower: float
    upper: float
    closed_upper: bool = False

    def contains(self, rate: float) -> bool:
        if self.closed_upper:
            return self.lower <= rate <= self.upper
        return self.lower <= rate < self.upper

    @property
    def label(self) -> str:
        close = ']' if self.closed_upper else ')'
        return f"{self.name} [{self.lower:.2f}, {self.upper:.2f}{close}"


RECRUITMENT_BUCKETS: Tuple[Bucket, ...] = (
    Bucket('Low', 0.0, 0.33),
    Bucket('Medium', 0.33, 0.66),
    Bucket('High', 0.66, 0.9),
    Bucket('Perfect', 0.9, 1.0, closed_upper=True),
)

BUCKET_NAMES = tuple(b.name for b in RECRUITMENT_BUCKETS)


def validate_buckets(buckets: Sequence[Bucket]) -> None:
    """
    Check that a bucket table partitions [0, 1] with no gaps or overlaps.

    Raises:
        ValueError: If the table is empty, unordered, has gaps/overlaps,
            duplicate names, or does not close at 1.0
    """
    if not buckets:
        raise ValueError("Bucket table is empty")

    names = [b.name for b in buckets]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate bucket names: {names}")

    if buckets[0].lower != 0.0:
        raise ValueError(f"First bucket must start at 0.0, got {buckets[0].lower}")

    for prev, cur in zip(buckets, buckets[1:]):
        if prev.closed_upper:
            raise ValueError(f"Only the last bucket may close its upper bound ('{prev.name}')")
        if prev.upper != cur.lower:
            raise ValueError(
                f"Buckets '{prev.name}' and '{cur.name}' are not contiguous "
                f"({prev.upper} != {cur.lower})"
            )

    last = buckets[-1]
    if last.upper != 1.0 or not last.closed_upper:
        raise ValueError(f"Last bucket must end at 1.0 inclusive ('{last.name}')")

    for b in buckets:
        if b.lower >= b.upper:
            raise ValueError(f"Bucket '{b.name}' has an empty range")


def compute_bucket(rate: float, buckets: Sequence[Bucket] = RECRUITMENT_BUCKETS) -> Bucket:
    """
    Map a recruitment rate to its bucket.

    Args:
        rate: Recruitment success rate in [0, 1]
        buckets: Ordered bucket table (defaults to RECRUITMENT_BUCKETS)

    Returns:
        The single Bucket containing the rate

    Raises:
        ValueError: If rate is NaN or outside [0, 1]
    """
    if rate is None or (isinstance(rate, float) and math.isnan(rate)):
        raise ValueError("Recruitment rate is missing")

    rate = float(rate)
    for bucket in buckets:
        if bucket.contains(rate):
            return bucket

    raise ValueError(f"Recruitment rate {rate} is outside [0, 1]")


def bucket_by_name(name: str, buckets: Sequence[Bucket] = RECRUITMENT_BUCKETS) -> Bucket:
    """Look up a bucket by name (case-insensitive)."""
    if isinstance(name, str):
        wanted = name.strip().lower()
        for bucket in buckets:
            if bucket.name.lower() == wanted:
                return bucket
    raise UnknownBucketError(name)


def _rates(simulations) -> pd.Series:
    """Accept a simulations DataFrame (indexed by id) or a Series of rates."""
    if isinstance(simulations, pd.DataFrame):
        return simulations[RATE_COLUMN]
    return simulations


def members_of(
    bucket: Bucket,
    simulations,
    buckets: Sequence[Bucket] = RECRUITMENT_BUCKETS
) -> Set[str]:
    """
    Simulation ids whose recruitment rate falls in the bucket.

    Uses compute_bucket() per simulation so membership always agrees with
    the bucket reported for a single rate.

    Args:
        bucket: Bucket to translate
        simulations: DataFrame indexed by simulation id with a
            'recruitment_rate' column, or a Series of rates indexed by id

    Returns:
        Set of simulation ids
    """
    rates = _rates(simulations)
    return {
        sim_id for sim_id, rate in rates.items()
        if compute_bucket(rate, buckets).name == bucket.name
    }


def assign_buckets(simulations, buckets: Sequence[Bucket] = RECRUITMENT_BUCKETS) -> pd.Series:
    """Bucket name per simulation (same index as the input)."""
    rates = _rates(simulations)
    return rates.apply(lambda r: compute_bucket(r, buckets).name).rename('bucket')


def bucket_counts(simulations, names: Optional[Iterable[str]] = None) -> pd.Series:
    """Number of simulations per bucket, in bucket order (zeros included)."""
    order = list(names) if names is not None else list(BUCKET_NAMES)
    labels = assign_buckets(simulations)
    return labels.value_counts().reindex(order, fill_value=0)


validate_buckets(RECRUITMENT_BUCKETS)
