"""
Tests for zero-class fluctuation analysis.
"""

import math
import sys
import unittest
import warnings
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd


class TestFluctuationSteps(unittest.TestCase):
    """Individual estimation steps."""

    def test_rate_interval_inversion(self):
        """Lower p0 bound gives the upper rate bound, and vice versa."""
        from analysis import rate_interval_from_bounds

        rate_lower, rate_upper = rate_interval_from_bounds(0.3, 0.5, 1000.0)

        self.assertAlmostEqual(rate_lower, -math.log(0.5) / 1000, places=15)
        self.assertAlmostEqual(rate_upper, -math.log(0.3) / 1000, places=15)
        self.assertLess(rate_lower, rate_upper)

    def test_reversed_bounds_raise(self):
        from analysis import rate_interval_from_bounds

        with self.assertRaises(ValueError):
            rate_interval_from_bounds(0.5, 0.3, 1000.0)

    def test_zero_lower_bound_is_unbounded(self):
        from analysis import rate_interval_from_bounds

        rate_lower, rate_upper = rate_interval_from_bounds(0.0, 0.4, 1000.0)

        self.assertEqual(rate_upper, math.inf)
        self.assertAlmostEqual(rate_lower, -math.log(0.4) / 1000, places=15)

    def test_zero_upper_bound_raises(self):
        from analysis import rate_interval_from_bounds, DomainError

        with self.assertRaises(DomainError):
            rate_interval_from_bounds(0.0, 0.0, 1000.0)

    def test_mutational_events(self):
        from analysis import estimate_mutational_events

        self.assertAlmostEqual(estimate_mutational_events(5, 10), math.log(2), places=12)
        self.assertEqual(estimate_mutational_events(8, 8), 0.0)

    def test_no_zero_class_raises(self):
        from analysis import estimate_mutational_events, DomainError

        with self.assertRaises(DomainError):
            estimate_mutational_events(0, 12)

    def test_no_cultures_raises(self):
        from analysis import estimate_mutational_events, InsufficientDataError

        with self.assertRaises(InsufficientDataError):
            estimate_mutational_events(0, 0)

    def test_mean_cell_yield(self):
        from analysis import mean_cell_yield

        self.assertAlmostEqual(mean_cell_yield([1e8, 3e8], dilution_factor=10.0), 2e9)

    def test_mean_cell_yield_rejects_bad_input(self):
        from analysis import mean_cell_yield, DomainError, InsufficientDataError

        with self.assertRaises(InsufficientDataError):
            mean_cell_yield([], dilution_factor=10.0)

        with self.assertRaises(DomainError):
            mean_cell_yield([1e8], dilution_factor=0.0)

        with self.assertRaises(DomainError):
            mean_cell_yield([1e8, -5.0], dilution_factor=10.0)


class TestAnalyzeStrain(unittest.TestCase):
    """Per-strain estimates."""

    def setUp(self):
        """Seven of ten cultures without mutants."""
        self.colonies = [0, 0, 0, 0, 0, 1, 2, 0, 3, 0]
        self.cells = [2e8, 3e8, 2.5e8]

    def test_point_estimate(self):
        from analysis import analyze_strain

        result = analyze_strain(
            'REL606', self.colonies, self.cells, dilution_factor=100.0
        )

        cell_yield = 2.5e8 * 100.0
        self.assertEqual(result.n_cultures, 10)
        self.assertEqual(result.n_zero, 7)
        self.assertAlmostEqual(result.p0, 0.7)
        self.assertAlmostEqual(result.cell_yield, cell_yield)
        self.assertAlmostEqual(result.m, -math.log(0.7), places=12)
        self.assertAlmostEqual(
            result.mutation_rate / (-math.log(0.7) / cell_yield), 1.0, places=12
        )

    def test_interval_brackets_estimate(self):
        from analysis import analyze_strain

        result = analyze_strain('REL606', self.colonies, self.cells)
        p0_lower, p0_upper = result.p0_ci

        self.assertLess(p0_lower, result.p0)
        self.assertGreater(p0_upper, result.p0)
        self.assertLess(result.rate_ci_lower, result.mutation_rate)
        self.assertGreater(result.rate_ci_upper, result.mutation_rate)

        # Upper rate bound comes from the lower p0 bound
        self.assertAlmostEqual(
            result.rate_ci_upper / (-math.log(p0_lower) / result.cell_yield),
            1.0, places=12
        )

    def test_wider_confidence_widens_interval(self):
        from analysis import analyze_strain

        narrow = analyze_strain('REL606', self.colonies, self.cells, confidence_level=0.80)
        wide = analyze_strain('REL606', self.colonies, self.cells, confidence_level=0.99)

        self.assertLess(wide.rate_ci_lower, narrow.rate_ci_lower)
        self.assertGreater(wide.rate_ci_upper, narrow.rate_ci_upper)

    def test_all_cultures_with_mutants_raise(self):
        from analysis import analyze_strain, DomainError

        with self.assertRaises(DomainError):
            analyze_strain('REL607', [1, 4, 2, 7, 3], self.cells)

    def test_single_zero_culture_keeps_estimate(self):
        """One mutant-free culture of 20 clips the Agresti-Coull p0 bound at 0."""
        from analysis import analyze_strain

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            result = analyze_strain('Ara-1', [0] + [3] * 19, [1e8, 2e8])

        self.assertEqual(result.n_zero, 1)
        self.assertEqual(result.p0_ci[0], 0.0)
        self.assertEqual(result.rate_ci_upper, math.inf)
        self.assertAlmostEqual(
            result.mutation_rate / (math.log(20) / result.cell_yield), 1.0, places=12
        )
        self.assertLess(result.rate_ci_lower, result.mutation_rate)
        self.assertTrue(any('unbounded' in str(w.message) for w in caught))


class TestAnalyzeFluctuation(unittest.TestCase):
    """Table-level analysis."""

    def setUp(self):
        self.colony_table = pd.DataFrame({
            'strain': ['REL606'] * 6 + ['Ara-1'] * 6,
            'replicate.ID': list(range(1, 7)) * 2,
            'n.colonies': [0, 0, 1, 0, 0, 2, 0, 5, 0, 3, 1, 0]
        })
        self.cell_table = pd.DataFrame({
            'strain': ['REL606'] * 3 + ['Ara-1'] * 3,
            'replicate.ID': [1, 2, 3] * 2,
            'cell.count': [1e8, 2e8, 3e8, 4e8, 5e8, 6e8]
        })

    def test_results_per_strain(self):
        from analysis import analyze_fluctuation, AnalysisConfig

        results = analyze_fluctuation(
            self.colony_table, self.cell_table, AnalysisConfig(dilution_factor=10.0)
        )

        self.assertEqual(list(results), ['REL606', 'Ara-1'])
        self.assertEqual(results['REL606'].n_zero, 4)
        self.assertEqual(results['Ara-1'].n_zero, 3)
        self.assertAlmostEqual(results['REL606'].cell_yield, 2e9)
        self.assertAlmostEqual(results['Ara-1'].cell_yield, 5e9)

        for result in results.values():
            row = result.to_dict()
            self.assertLessEqual(row['rate_ci_lower'], row['mutation_rate'])
            self.assertGreaterEqual(row['rate_ci_upper'], row['mutation_rate'])

    def test_sparse_zero_class_keeps_other_strains(self):
        from analysis import analyze_fluctuation

        colony_table = pd.DataFrame({
            'strain': ['A'] * 10 + ['B'] * 10,
            'n.colonies': [0] * 5 + [2] * 5 + [0] + [4] * 9
        })
        cell_table = pd.DataFrame({
            'strain': ['A', 'A', 'B', 'B'],
            'cell.count': [1e8, 2e8, 1e8, 2e8]
        })

        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            results = analyze_fluctuation(colony_table, cell_table)

        self.assertEqual(list(results), ['A', 'B'])
        self.assertTrue(math.isfinite(results['A'].rate_ci_upper))
        self.assertEqual(results['B'].rate_ci_upper, math.inf)
        self.assertGreater(results['B'].mutation_rate, results['A'].mutation_rate)

    def test_strain_without_zero_class_raises(self):
        from analysis import analyze_fluctuation, DomainError

        colony_table = self.colony_table.copy()
        colony_table.loc[colony_table['strain'] == 'Ara-1', 'n.colonies'] = 2

        with self.assertRaises(DomainError):
            analyze_fluctuation(colony_table, self.cell_table)

    def test_missing_cell_counts_raise(self):
        from analysis import analyze_fluctuation, InsufficientDataError

        cell_table = self.cell_table[self.cell_table['strain'] == 'REL606']

        with self.assertRaises(InsufficientDataError):
            analyze_fluctuation(self.colony_table, cell_table)


if __name__ == '__main__':
    unittest.main(verbosity=2)
