"""
Utilities for the linked-views program explorer.

Modules:
- selection: Selection value and session-scoped SelectionStore
- buckets: Recruitment-rate buckets (Low/Medium/High/Perfect)
- catalog: Immutable simulation/field collections and level translation
- coordinator: Keeps every view in sync with the SelectionStore
- data_loader: Data directory loading with demo-data fallback
- color_schemes: Bucket colors and selection emphasis
- settings: Environment/secrets-backed configuration
"""

from .selection import (
    Selection,
    SelectionStore,
    InvalidSelectionError,
    LEVEL_NONE,
    LEVEL_SIMULATION,
    LEVEL_FIELD,
    LEVEL_BUCKET,
)

from .buckets import (
    Bucket,
    RECRUITMENT_BUCKETS,
    BUCKET_NAMES,
    UnknownBucketError,
    compute_bucket,
    members_of,
    bucket_by_name,
    assign_buckets,
    bucket_counts,
    validate_buckets,
)

from .catalog import (
    Catalog,
    OUTCOME_COLUMNS,
    get_outcome_label,
)

from .coordinator import Coordinator

from .data_loader import (
    load_catalog,
    generate_demo_catalog,
    get_outcome_options,
)

__all__ = [
    # Selection
    'Selection',
    'SelectionStore',
    'InvalidSelectionError',
    'LEVEL_NONE',
    'LEVEL_SIMULATION',
    'LEVEL_FIELD',
    'LEVEL_BUCKET',
    # Buckets
    'Bucket',
    'RECRUITMENT_BUCKETS',
    'BUCKET_NAMES',
    'UnknownBucketError',
    'compute_bucket',
    'members_of',
    'bucket_by_name',
    'assign_buckets',
    'bucket_counts',
    'validate_buckets',
    # Catalog
    'Catalog',
    'OUTCOME_COLUMNS',
    'get_outcome_label',
    # Coordinator
    'Coordinator',
    # Data loading
    'load_catalog',
    'generate_demo_catalog',
    'get_outcome_options',
]
