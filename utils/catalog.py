"""
In-memory catalog of simulations, fields and program membership.

Loaded once per process and treated as read-only afterwards. Provides the
level translation the linked views rely on:
- a simulation selection determines its enrolled fields
- a field selection determines every simulation that enrolls any of them
- a bucket selection determines its member simulations
"""
import logging
from typing import Dict, FrozenSet, Iterable, List, Set

import pandas as pd

from .buckets import RATE_COLUMN, assign_buckets, bucket_by_name, members_of
from .selection import (
    LEVEL_BUCKET,
    LEVEL_FIELD,
    LEVEL_NONE,
    LEVEL_SIMULATION,
    Selection,
)

logger = logging.getLogger(__name__)

# Outcome variables summed per simulation (column -> display label)
OUTCOME_COLUMNS = {
    'cost': 'Cost ($)',
    'nitrogen_runoff': 'Nitrogen Runoff (kg)',
    'phosphorus_runoff': 'Phosphorus Runoff (kg)',
    'sediment_runoff': 'Sediment Runoff (t)',
    'infiltration_storage': 'Infiltration for Storage (AF)',
    'infiltration_gde': 'Infiltration for GDE (AF)',
    'irrigation_groundwater': 'Irrigation from Groundwater (AF)',
    'irrigation_surface': 'Irrigation from Surface Water (AF)',
}

FIELD_ATTRIBUTE_COLUMNS = ['net_present_cost', 'acres']


def get_outcome_label(column: str) -> str:
    """Display label for an outcome column."""
    return OUTCOME_COLUMNS.get(column, column.replace('_', ' ').title())


class Catalog:
    """
    Immutable Simulation/Field collections.

    Args:
        simulations: DataFrame indexed by simulation id with 'recruitment_rate'
            and outcome columns
        fields: DataFrame indexed by field id with a 'polygon' column
            (exterior ring as [[lon, lat], ...]) and field attributes
        membership: DataFrame with 'simulation_id' and 'field_id' columns
    """

    def __init__(self, simulations: pd.DataFrame, fields: pd.DataFrame, membership: pd.DataFrame):
        simulations = simulations.copy()
        simulations.index = simulations.index.astype(str)
        simulations.index.name = 'simulation_id'

        fields = fields.copy()
        fields.index = fields.index.astype(str)
        fields.index.name = 'field_id'

        membership = membership[['simulation_id', 'field_id']].astype(str).drop_duplicates()
        membership = membership.reset_index(drop=True)

        if 'bucket' not in simulations.columns:
            simulations['bucket'] = assign_buckets(simulations)

        self._simulations = simulations
        self._fields = fields
        self._membership = membership

        self._fields_by_sim: Dict[str, FrozenSet[str]] = {
            sim_id: frozenset(group['field_id'])
            for sim_id, group in membership.groupby('simulation_id')
        }
        self._sims_by_field: Dict[str, FrozenSet[str]] = {
            field_id: frozenset(group['simulation_id'])
            for field_id, group in membership.groupby('field_id')
        }

        logger.info(
            f"Catalog ready: {len(simulations)} simulations, {len(fields)} fields, "
            f"{len(membership)} program-field links"
        )

    # ------------------------------------------------------------------
    # Read-only accessors (copies, so callers cannot mutate the catalog)
    # ------------------------------------------------------------------
    @property
    def simulations(self) -> pd.DataFrame:
        return self._simulations.copy()

    @property
    def fields(self) -> pd.DataFrame:
        return self._fields.copy()

    @property
    def membership(self) -> pd.DataFrame:
        return self._membership.copy()

    @property
    def simulation_ids(self) -> FrozenSet[str]:
        return frozenset(self._simulations.index)

    @property
    def field_ids(self) -> FrozenSet[str]:
        return frozenset(self._fields.index)

    @property
    def outcome_columns(self) -> List[str]:
        return [c for c in OUTCOME_COLUMNS if c in self._simulations.columns]

    def __len__(self) -> int:
        return len(self._simulations)

    # ------------------------------------------------------------------
    # Level translation
    # ------------------------------------------------------------------
    def fields_of(self, simulation_ids: Iterable[str]) -> Set[str]:
        """Union of fields enrolled by the given simulations."""
        result: Set[str] = set()
        for sim_id in simulation_ids:
            result |= self._fields_by_sim.get(sim_id, frozenset())
        return result

    def simulations_with(self, field_ids: Iterable[str]) -> Set[str]:
        """Simulations enrolling at least one of the given fields."""
        result: Set[str] = set()
        for field_id in field_ids:
            result |= self._sims_by_field.get(field_id, frozenset())
        return result

    def bucket_members(self, bucket_name: str) -> Set[str]:
        """Simulation ids in a recruitment bucket (raises UnknownBucketError)."""
        bucket = bucket_by_name(bucket_name)
        return members_of(bucket, self._simulations[RATE_COLUMN])

    def unknown_ids(self, level: str, ids: Iterable[str]) -> Set[str]:
        """Ids not present in the catalog at the given level."""
        if level == LEVEL_SIMULATION:
            known = self._simulations.index
        elif level == LEVEL_FIELD:
            known = self._fields.index
        else:
            return set()
        return {i for i in ids if i not in known}

    def project(self, selection: Selection, level: str) -> FrozenSet[str]:
        """
        Ids highlighted at `level` ('simulation' or 'field') for a selection.

        Args:
            selection: Any selection in the shared vocabulary
            level: Level the caller displays

        Returns:
            Frozen set of ids at that level (empty for an empty selection)
        """
        if selection.level == LEVEL_NONE:
            return frozenset()

        # A bucket label is authoritative at every level, even after the
        # selection was translated to field ids
        if selection.level == LEVEL_BUCKET or selection.bucket:
            sims = self.bucket_members(selection.bucket)
            if level == LEVEL_SIMULATION:
                return frozenset(sims)
            return frozenset(self.fields_of(sims))

        if selection.level == level:
            return selection.ids

        if selection.level == LEVEL_SIMULATION and level == LEVEL_FIELD:
            return frozenset(self.fields_of(selection.ids))

        if selection.level == LEVEL_FIELD and level == LEVEL_SIMULATION:
            return frozenset(self.simulations_with(selection.ids))

        raise ValueError(f"Cannot project {selection.level} selection to level {level!r}")

    def translate(self, selection: Selection, level: str) -> Selection:
        """
        Re-express a selection at the given granularity.

        Bucket selections keep their bucket name as a label so the shell can
        still show which recruitment range is active.
        """
        if selection.is_empty:
            return selection

        if level not in (LEVEL_SIMULATION, LEVEL_FIELD):
            raise ValueError(f"Unsupported granularity: {level!r}")

        ids = self.project(selection, level)
        bucket = selection.bucket
        if not ids and bucket:
            # A bucket without members stays selected (nothing highlighted)
            return Selection(level, frozenset(), bucket, selection.origin)
        if level == LEVEL_SIMULATION:
            return Selection.of_simulations(ids, origin=selection.origin, bucket=bucket)
        return Selection.of_fields(ids, origin=selection.origin, bucket=bucket)

    def selected_simulations(self, selection: Selection) -> pd.DataFrame:
        """Simulation rows highlighted by a selection (all rows when empty)."""
        if selection.is_empty:
            return self.simulations
        ids = self.project(selection, LEVEL_SIMULATION)
        return self._simulations[self._simulations.index.isin(list(ids))].copy()
