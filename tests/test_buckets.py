"""
Tests for recruitment-rate buckets.

Covers:
1. Boundary placement (half-open ranges, inclusive 1.0)
2. Coverage and partition of [0, 1]
3. members_of round trip and union
4. Invalid rates, unknown names and malformed bucket tables
"""
import numpy as np
import pandas as pd
import pytest

from utils.buckets import (
    BUCKET_NAMES,
    RECRUITMENT_BUCKETS,
    Bucket,
    UnknownBucketError,
    assign_buckets,
    bucket_by_name,
    bucket_counts,
    compute_bucket,
    members_of,
    validate_buckets,
)


class TestComputeBucket:
    """Tests for compute_bucket()."""

    @pytest.mark.parametrize("rate,expected", [
        (0.0, 'Low'),
        (0.1, 'Low'),
        (0.3299, 'Low'),
        (0.33, 'Medium'),
        (0.5, 'Medium'),
        (0.66, 'High'),
        (0.8999, 'High'),
        (0.9, 'Perfect'),
        (0.95, 'Perfect'),
        (1.0, 'Perfect'),
    ])
    def test_boundaries(self, rate, expected):
        assert compute_bucket(rate).name == expected

    @pytest.mark.parametrize("rate", [-0.01, 1.0001, 2.0, float('nan'), None])
    def test_invalid_rate_raises(self, rate):
        with pytest.raises(ValueError):
            compute_bucket(rate)

    def test_every_rate_in_exactly_one_bucket(self):
        for rate in np.linspace(0.0, 1.0, 1001):
            containing = [b for b in RECRUITMENT_BUCKETS if b.contains(rate)]
            assert len(containing) == 1, f"rate {rate} in {containing}"
            assert compute_bucket(rate) == containing[0]

    def test_numpy_float_accepted(self):
        assert compute_bucket(np.float64(0.7)).name == 'High'


class TestBucketByName:
    """Tests for bucket_by_name()."""

    def test_case_insensitive(self):
        assert bucket_by_name('perfect').name == 'Perfect'
        assert bucket_by_name(' Medium ').name == 'Medium'

    def test_unknown_name_raises(self):
        with pytest.raises(UnknownBucketError):
            bucket_by_name('Excellent')

    def test_unknown_bucket_is_key_error(self):
        with pytest.raises(KeyError):
            bucket_by_name(None)


class TestMembersOf:
    """Tests for members_of() and the bucket helpers built on it."""

    def test_scenario_members(self, simulations):
        assert members_of(bucket_by_name('Low'), simulations) == {'S1'}
        assert members_of(bucket_by_name('Medium'), simulations) == {'S2'}
        assert members_of(bucket_by_name('High'), simulations) == set()
        assert members_of(bucket_by_name('Perfect'), simulations) == {'S3'}

    def test_round_trip(self, demo_catalog):
        sims = demo_catalog.simulations
        for bucket in RECRUITMENT_BUCKETS:
            for sim_id in members_of(bucket, sims):
                assert compute_bucket(sims.loc[sim_id, 'recruitment_rate']) == bucket

    def test_union_is_all_and_disjoint(self, demo_catalog):
        sims = demo_catalog.simulations
        groups = [members_of(b, sims) for b in RECRUITMENT_BUCKETS]

        union = set().union(*groups)
        assert union == set(sims.index)
        assert sum(len(g) for g in groups) == len(sims)

    def test_accepts_series(self):
        rates = pd.Series({'a': 0.2, 'b': 0.91, 'c': 1.0})
        assert members_of(bucket_by_name('Perfect'), rates) == {'b', 'c'}

    def test_assign_buckets(self, simulations):
        labels = assign_buckets(simulations)
        assert labels.name == 'bucket'
        assert labels.to_dict() == {'S1': 'Low', 'S2': 'Medium', 'S3': 'Perfect'}

    def test_bucket_counts_include_empty_buckets(self, simulations):
        counts = bucket_counts(simulations)
        assert list(counts.index) == list(BUCKET_NAMES)
        assert counts['High'] == 0
        assert counts.sum() == 3


class TestValidateBuckets:
    """Tests for validate_buckets()."""

    def test_default_table_is_valid(self):
        validate_buckets(RECRUITMENT_BUCKETS)

    def test_gap_rejected(self):
        table = (Bucket('A', 0.0, 0.3), Bucket('B', 0.33, 1.0, closed_upper=True))
        with pytest.raises(ValueError, match="contiguous"):
            validate_buckets(table)

    def test_overlap_rejected(self):
        table = (Bucket('A', 0.0, 0.5), Bucket('B', 0.4, 1.0, closed_upper=True))
        with pytest.raises(ValueError):
            validate_buckets(table)

    def test_open_last_bucket_rejected(self):
        table = (Bucket('A', 0.0, 0.5), Bucket('B', 0.5, 1.0))
        with pytest.raises(ValueError, match="inclusive"):
            validate_buckets(table)

    def test_duplicate_names_rejected(self):
        table = (Bucket('A', 0.0, 0.5), Bucket('A', 0.5, 1.0, closed_upper=True))
        with pytest.raises(ValueError, match="Duplicate"):
            validate_buckets(table)

    def test_empty_table_rejected(self):
        with pytest.raises(ValueError):
            validate_buckets(())

    def test_label(self):
        assert bucket_by_name('Perfect').label == 'Perfect [0.90, 1.00]'
        assert bucket_by_name('Low').label == 'Low [0.00, 0.33)'
