#!/usr/bin/env python3
"""
Resistance Evolution Analysis - Main CLI

Entry point for the statistical analysis of resistance loss and
re-evolvability across a long-term evolution experiment.

The pipeline:
1. Resistance loss: derived clones vs ancestors (trinomial + Fisher)
2. Evolvability: daughters vs parents (trinomial + Fisher)
3. Time series: evolvability across time points (Kruskal-Wallis + Dunnett)
4. Mutation rates: fluctuation analysis with confidence intervals
5. Output CSV tables and analysis_summary.json

Usage:
    python main.py --mic-table mic.csv --output-dir ./results
    python main.py --colony-table colonies.csv --cell-table cells.csv

Author: Resistance Evolution Analysis
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from analysis.config import (
    AnalysisConfig,
    CI_METHODS,
    DEFAULT_ANCESTORS,
    DEFAULT_CI_METHOD,
    DEFAULT_CONFIDENCE_LEVEL,
    DEFAULT_CONTROL_TIME_POINT,
    DEFAULT_DILUTION_FACTOR
)
from analysis.pipelines import (
    cell_yield_comparison,
    evolvability_analysis,
    mutation_rate_analysis,
    resistance_loss_analysis,
    time_series_evolvability_analysis
)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Analyse loss and re-evolution of antibiotic resistance',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py --mic-table mic.csv
    python main.py --time-series-table ts.csv --control-time-point 0
    python main.py --colony-table colonies.csv --cell-table cells.csv --dilution-factor 100
    python main.py --cell-table cells.csv --compare-yields REL606 REL607
        """
    )

    parser.add_argument(
        '--mic-table', type=str, default=None,
        help='MIC table CSV (strain, paired.ID, row.ID, <drug>.parent, <drug>.daughter)'
    )

    parser.add_argument(
        '--time-series-table', type=str, default=None,
        help='Time-series MIC table CSV (strain, row.ID, parent, daughter)'
    )

    parser.add_argument(
        '--colony-table', type=str, default=None,
        help='Fluctuation colony counts CSV (strain, replicate.ID, n.colonies)'
    )

    parser.add_argument(
        '--cell-table', type=str, default=None,
        help='Cell counts CSV (strain, replicate.ID, cell.count)'
    )

    parser.add_argument(
        '--output-dir', type=str, default='.',
        help='Output directory for results (default: current directory)'
    )

    parser.add_argument(
        '--dilution-factor', type=float, default=DEFAULT_DILUTION_FACTOR,
        help=f'Multiplier applied to mean cell counts (default: {DEFAULT_DILUTION_FACTOR})'
    )

    parser.add_argument(
        '--confidence-level', type=float, default=DEFAULT_CONFIDENCE_LEVEL,
        help=f'Confidence level of the p0 interval (default: {DEFAULT_CONFIDENCE_LEVEL})'
    )

    parser.add_argument(
        '--ci-method', type=str, default=DEFAULT_CI_METHOD, choices=CI_METHODS,
        help=f'Binomial proportion interval method (default: {DEFAULT_CI_METHOD})'
    )

    parser.add_argument(
        '--tie-tolerance', type=float, default=0.0,
        help='Largest |log2 MIC difference| counted as a tie (default: 0, exact)'
    )

    parser.add_argument(
        '--ancestors', type=str, nargs='+', default=list(DEFAULT_ANCESTORS),
        help=f'Ancestral strains (default: {" ".join(DEFAULT_ANCESTORS)})'
    )

    parser.add_argument(
        '--control-time-point', type=str, default=DEFAULT_CONTROL_TIME_POINT,
        help=f'Control group for Dunnett\'s test (default: {DEFAULT_CONTROL_TIME_POINT})'
    )

    parser.add_argument(
        '--compare-yields', type=str, nargs=2, metavar=('STRAIN_A', 'STRAIN_B'),
        default=None,
        help='Compare cell yields of two strains (Shapiro-Wilk, F-test, Welch)'
    )

    parser.add_argument(
        '--quiet', action='store_true',
        help='Suppress progress output'
    )

    return parser.parse_args(argv)


def config_from_args(args) -> AnalysisConfig:
    """Build a validated AnalysisConfig from parsed arguments."""
    return AnalysisConfig(
        dilution_factor=args.dilution_factor,
        confidence_level=args.confidence_level,
        ci_method=args.ci_method,
        tie_tolerance=args.tie_tolerance,
        ancestral_strains=tuple(args.ancestors),
        control_time_point=args.control_time_point
    )


def read_table(path: Optional[str]) -> Optional[pd.DataFrame]:
    """Read an input CSV, keeping strain labels as strings."""
    if path is None:
        return None
    return pd.read_csv(path, dtype={'strain': str})


def convert_for_json(obj):
    """Convert numpy and pandas types for JSON serialization."""
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, pd.DataFrame):
        return [convert_for_json(r) for r in obj.to_dict('records')]
    elif isinstance(obj, dict):
        return {str(k): convert_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_for_json(i) for i in obj]
    return obj


def save_table(df: pd.DataFrame, path: Path, quiet: bool):
    df.to_csv(path, index=False)
    if not quiet:
        print(f"Saved: {path}")


def run_analyses(args, config: AnalysisConfig, output_dir: Path) -> Dict[str, Any]:
    """
    Run every analysis whose input tables were given.

    Returns:
        Dict of results keyed by analysis name
    """
    quiet = args.quiet
    summary = {}

    mic_table = read_table(args.mic_table)
    if mic_table is not None:
        if not quiet:
            print("\nQuestion 1: loss of resistance (derived vs ancestor)...")
        loss = resistance_loss_analysis(mic_table, config)
        save_table(loss['outcomes'], output_dir / 'resistance_loss_pvalues.csv', quiet)
        save_table(loss['combined'], output_dir / 'resistance_loss_combined.csv', quiet)
        summary['resistance_loss'] = loss

        if not quiet:
            print("\nQuestion 2: evolvability (daughter vs parent)...")
        evolv = evolvability_analysis(mic_table, config)
        save_table(evolv['outcomes'], output_dir / 'evolvability_pvalues.csv', quiet)
        save_table(evolv['combined'], output_dir / 'evolvability_combined.csv', quiet)
        save_table(evolv['evolvability'], output_dir / 'evolvability_values.csv', quiet)
        summary['evolvability'] = evolv

    ts_table = read_table(args.time_series_table)
    if ts_table is not None:
        if not quiet:
            print("\nEvolvability over time (Kruskal-Wallis, Dunnett)...")
        ts = time_series_evolvability_analysis(ts_table, config)
        save_table(ts['summary'], output_dir / 'time_series_summary.csv', quiet)
        summary['time_series'] = ts

    colony_table = read_table(args.colony_table)
    cell_table = read_table(args.cell_table)
    if colony_table is not None:
        if cell_table is None:
            raise ValueError("--colony-table requires --cell-table")
        if not quiet:
            print("\nQuestion 3: mutation rates (fluctuation analysis)...")
        rates = mutation_rate_analysis(colony_table, cell_table, config)
        save_table(rates, output_dir / 'mutation_rates.csv', quiet)
        summary['mutation_rates'] = rates

    if args.compare_yields:
        if cell_table is None:
            raise ValueError("--compare-yields requires --cell-table")
        strain_a, strain_b = args.compare_yields
        if not quiet:
            print(f"\nComparing cell yields of {strain_a} and {strain_b}...")
        summary['cell_yield_comparison'] = cell_yield_comparison(cell_table, strain_a, strain_b)

    return summary


def print_summary(summary: Dict[str, Any]):
    """Print the headline numbers of each analysis."""
    print("\n" + "=" * 60)
    print("ANALYSIS SUMMARY")
    print("=" * 60)

    for name in ('resistance_loss', 'evolvability'):
        if name in summary:
            print(f"\n{name.replace('_', ' ').title()} - Fisher combined p-values:")
            for row in summary[name]['combined'].to_dict('records'):
                print(f"  {row['antibiotic']}: X2={row['statistic']:.3f} "
                      f"(df={row['df']}), p={row['p_value']:.4g}")

    if 'time_series' in summary:
        kw = summary['time_series']['kruskal']
        print(f"\nKruskal-Wallis across time points: H={kw['statistic']:.3f}, "
              f"p={kw['p_value']:.4g}")
        for label, res in summary['time_series']['dunnett'].items():
            print(f"  Dunnett {label} vs control: p={res['p_value']:.4g}")

    if 'mutation_rates' in summary:
        print("\nMutation rates [CI lower, CI upper]:")
        for row in summary['mutation_rates'].to_dict('records'):
            print(f"  {row['strain']}: {row['mutation_rate']:.3e} "
                  f"[{row['rate_ci_lower']:.3e}, {row['rate_ci_upper']:.3e}]")

    if 'cell_yield_comparison' in summary:
        welch = summary['cell_yield_comparison']['welch']
        f_test = summary['cell_yield_comparison']['f_test']
        print(f"\nCell yields: F-test p={f_test['p_value']:.4g}, "
              f"Welch t={welch['statistic']:.3f}, p={welch['p_value']:.4g}")


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    if not any([args.mic_table, args.time_series_table, args.colony_table,
                args.compare_yields]):
        print("Nothing to do: give at least one input table (see --help)")
        return 1

    config = config_from_args(args)

    if not args.quiet:
        print("=" * 60)
        print("RESISTANCE EVOLUTION ANALYSIS")
        print("=" * 60)
        print(f"Ancestral strains: {', '.join(config.ancestral_strains)}")
        print(f"Dilution factor: {config.dilution_factor}")
        print(f"p0 interval: {config.ci_method} at {config.confidence_level:.0%}")
        print(f"Tie tolerance: {config.tie_tolerance}")
        print(f"Output directory: {args.output_dir}")
        print("=" * 60)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    start_time = time.time()
    summary = run_analyses(args, config, output_dir)
    elapsed = time.time() - start_time

    summary_path = output_dir / 'analysis_summary.json'
    with open(summary_path, 'w') as f:
        json.dump(convert_for_json(summary), f, indent=2)

    if not args.quiet:
        print(f"\nAnalyses completed in {elapsed:.2f} seconds")
        print(f"Saved summary to: {summary_path}")
        print_summary(summary)

    return 0


if __name__ == '__main__':
    sys.exit(main())
