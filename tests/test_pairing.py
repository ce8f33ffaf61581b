"""
Tests for paired comparisons and outcome grouping.
"""

import sys
import unittest
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd


def _obs(strain, antibiotic, genotype, paired_id, row_id, mic):
    from pairing import Observation
    return Observation(strain, antibiotic, genotype, paired_id, row_id, mic)


class TestCompare(unittest.TestCase):
    """Sign of a single comparison."""

    def test_lower_direction(self):
        from pairing import compare, Direction

        self.assertEqual(compare(3.0, 1.0, Direction.LOWER), 1)
        self.assertEqual(compare(3.0, 3.0, Direction.LOWER), 0)
        self.assertEqual(compare(3.0, 4.0, Direction.LOWER), -1)

    def test_higher_direction(self):
        from pairing import compare, Direction

        self.assertEqual(compare(1.0, 2.0, Direction.HIGHER), 1)
        self.assertEqual(compare(1.0, 1.0, Direction.HIGHER), 0)
        self.assertEqual(compare(1.0, 0.0, Direction.HIGHER), -1)

    def test_tie_tolerance(self):
        from pairing import compare, Direction

        self.assertEqual(compare(1.0, 1.2, Direction.HIGHER), 1)
        self.assertEqual(compare(1.0, 1.2, Direction.HIGHER, tie_tolerance=0.25), 0)
        self.assertEqual(compare(1.0, 0.8, Direction.HIGHER, tie_tolerance=0.25), 0)


class TestPairObservations(unittest.TestCase):
    """Pairing by key and antibiotic."""

    def test_pairs_by_paired_id(self):
        from pairing import (
            pair_observations, Antibiotic, Genotype, Direction, PairingKey
        )

        refs = [
            _obs('REL606', Antibiotic.AMP, Genotype.PARENT, 1, 1, 4.0),
            _obs('REL607', Antibiotic.AMP, Genotype.PARENT, 2, 2, 2.0),
        ]
        derived = [
            _obs('Ara-1', Antibiotic.AMP, Genotype.PARENT, 1, 3, 2.0),
            _obs('Ara+1', Antibiotic.AMP, Genotype.PARENT, 2, 4, 2.0),
            _obs('Ara+1', Antibiotic.AMP, Genotype.PARENT, 2, 5, 8.0),
        ]

        outcomes = pair_observations(refs, derived, PairingKey.PAIRED_ID, Direction.LOWER)

        self.assertEqual([o.sign for o in outcomes], [1, 0, -1])
        self.assertEqual(outcomes[0].strain, 'Ara-1')

    def test_missing_ancestor_raises(self):
        """Two-row table where the derived paired.ID has no ancestor."""
        from analysis import PairingError
        from analysis.pipelines import resistance_loss_analysis

        mic_table = pd.DataFrame({
            'strain': ['REL606', 'Ara-1'],
            'paired.ID': [1, 2],
            'row.ID': [1, 2],
            'amp.parent': [4.0, 2.0], 'amp.daughter': [8.0, 4.0],
            'cro.parent': [0.5, 0.25], 'cro.daughter': [1.0, 0.5],
            'cip.parent': [0.03, 0.015], 'cip.daughter': [0.06, 0.03],
            'tet.parent': [2.0, 1.0], 'tet.daughter': [4.0, 2.0],
        })

        with self.assertRaises(PairingError):
            resistance_loss_analysis(mic_table)

    def test_reference_for_other_antibiotic_does_not_match(self):
        from analysis import PairingError
        from pairing import (
            pair_observations, Antibiotic, Genotype, Direction, PairingKey
        )

        refs = [_obs('REL606', Antibiotic.AMP, Genotype.PARENT, 1, 1, 4.0)]
        derived = [_obs('Ara-1', Antibiotic.CRO, Genotype.PARENT, 1, 2, 0.25)]

        with self.assertRaises(PairingError):
            pair_observations(refs, derived, PairingKey.PAIRED_ID, Direction.LOWER)

    def test_duplicate_reference_raises(self):
        from analysis import PairingError
        from pairing import (
            pair_observations, Antibiotic, Genotype, Direction, PairingKey
        )

        refs = [
            _obs('REL606', Antibiotic.AMP, Genotype.PARENT, 1, 1, 4.0),
            _obs('REL606', Antibiotic.AMP, Genotype.PARENT, 1, 2, 4.0),
        ]
        derived = [_obs('Ara-1', Antibiotic.AMP, Genotype.PARENT, 1, 3, 2.0)]

        with self.assertRaises(PairingError):
            pair_observations(refs, derived, PairingKey.PAIRED_ID, Direction.LOWER)

    def test_pairs_by_row_id(self):
        from pairing import (
            pair_observations, Antibiotic, Genotype, Direction, PairingKey
        )

        parents = [_obs('Ara-1', Antibiotic.TET, Genotype.PARENT, 1, 7, 1.0)]
        daughters = [_obs('Ara-1', Antibiotic.TET, Genotype.DAUGHTER, 1, 7, 4.0)]

        outcomes = pair_observations(parents, daughters, PairingKey.ROW_ID, Direction.HIGHER)
        self.assertEqual(outcomes[0].sign, 1)

    def test_row_ids_restart_per_time_point(self):
        """The same row.ID at two time points pairs within each time point."""
        from pairing import evolvability_values, time_series_observations

        ts_table = pd.DataFrame({
            'strain': ['0', '0', '1A', '1A'],
            'row.ID': [1, 2, 1, 2],
            'parent': [1.0, 1.0, 2.0, 2.0],
            'daughter': [4.0, 2.0, 2.0, 16.0],
        })

        values = evolvability_values(time_series_observations(ts_table))

        self.assertEqual(
            [(v['strain'], v['row_id'], v['evolvability']) for v in values],
            [('0', 1, 2), ('0', 2, 1), ('1A', 1, 0), ('1A', 2, 3)]
        )

    def test_duplicate_row_id_within_strain_raises(self):
        from analysis import PairingError
        from pairing import (
            pair_observations, Antibiotic, Genotype, Direction, PairingKey
        )

        parents = [
            _obs('Ara-1', Antibiotic.TET, Genotype.PARENT, 1, 7, 1.0),
            _obs('Ara-1', Antibiotic.TET, Genotype.PARENT, 1, 7, 2.0),
        ]
        daughters = [_obs('Ara-1', Antibiotic.TET, Genotype.DAUGHTER, 1, 7, 4.0)]

        with self.assertRaises(PairingError):
            pair_observations(parents, daughters, PairingKey.ROW_ID, Direction.HIGHER)


class TestGroupingAndEvolvability(unittest.TestCase):

    def test_group_counts(self):
        from pairing import group_outcomes, PairedOutcome, Antibiotic

        outcomes = [
            PairedOutcome('Ara-1', Antibiotic.AMP, 1),
            PairedOutcome('Ara-1', Antibiotic.AMP, 1),
            PairedOutcome('Ara-1', Antibiotic.AMP, 0),
            PairedOutcome('Ara-1', Antibiotic.AMP, -1),
            PairedOutcome('Ara-1', Antibiotic.CIP, -1),
        ]

        grouped = group_outcomes(outcomes)
        amp = grouped[('Ara-1', Antibiotic.AMP)]

        self.assertEqual((amp.n_pos, amp.n_tie, amp.n_neg), (2, 1, 1))
        self.assertEqual(grouped[('Ara-1', Antibiotic.CIP)].n, 1)

    def test_empty_expected_group_raises(self):
        from analysis import InsufficientDataError
        from pairing import group_outcomes, PairedOutcome, Antibiotic

        outcomes = [PairedOutcome('Ara-1', Antibiotic.AMP, 1)]

        with self.assertRaises(InsufficientDataError):
            group_outcomes(
                outcomes,
                expected_groups=[('Ara-1', Antibiotic.AMP), ('Ara-1', Antibiotic.TET)]
            )

    def test_evolvability_is_rounded(self):
        from pairing import compute_evolvability, Antibiotic, Genotype

        parent = _obs('Ara-1', Antibiotic.AMP, Genotype.PARENT, 1, 1, 2.0)

        self.assertEqual(
            compute_evolvability(parent, _obs('Ara-1', Antibiotic.AMP, Genotype.DAUGHTER, 1, 1, 16.0)),
            3
        )
        # log2(6 / 2) = 1.58 rounds to 2
        self.assertEqual(
            compute_evolvability(parent, _obs('Ara-1', Antibiotic.AMP, Genotype.DAUGHTER, 1, 1, 6.0)),
            2
        )
        self.assertEqual(
            compute_evolvability(parent, _obs('Ara-1', Antibiotic.AMP, Genotype.DAUGHTER, 1, 1, 1.0)),
            -1
        )

    def test_non_positive_mic_raises(self):
        from analysis import DomainError
        from pairing import Antibiotic, Genotype

        with self.assertRaises(DomainError):
            _obs('Ara-1', Antibiotic.AMP, Genotype.PARENT, 1, 1, 0.0)


if __name__ == '__main__':
    unittest.main(verbosity=2)
