#!/usr/bin/env python3
"""
CCR Measure Engine - Demo Script

This script demonstrates the complete measure workflow:
1. Build the exposure grid and credit inputs from configuration
2. Generate synthetic paths
3. Build the integration kernels
4. Compute measures in batch mode
5. Compute the same measures in streaming mode across shards
6. Regulatory capital breakdown
7. Export results

Usage:
    python examples/run_demo.py [config.yaml]
"""

import datetime as dt
import logging
import sys
from pathlib import Path

from ccr_core import (
    BatchCalculations,
    CreditInputs,
    ExposureGrid,
    HazardCurve,
    StreamingCalculations,
    SyntheticPathGenerator,
    build_kernels,
    load_calculation_config,
)
from ccr_core.config import create_default_calculation_config
from ccr_core.reporting import (
    create_capital_table,
    create_measure_summary,
    create_summary_report,
    format_currency,
)


def main() -> None:
    """Run the CCR demo."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("CCR Measure Engine - Demo")
    print("=" * 60)
    print()

    # =========================================================================
    # 1. Configuration
    # =========================================================================
    print("1. Loading configuration...")

    if len(sys.argv) > 1:
        config = load_calculation_config(sys.argv[1])
    else:
        config = create_default_calculation_config(dt.date(2025, 1, 1))

    grid = ExposureGrid(config.grid.as_of, config.grid.dates())
    credit_cfg = config.credit

    print(f"   As-of: {grid.as_of}")
    print(f"   Exposure dates: {grid.n_dates} ({grid.first_date} to {grid.last_date})")
    print(f"   Measures: {', '.join(m.name for m in config.measures)}")
    print()

    # =========================================================================
    # 2. Generate Paths
    # =========================================================================
    print("2. Generating synthetic paths...")

    table = SyntheticPathGenerator.from_config(config.paths).generate(grid)

    print(f"   Paths: {table.n_paths}")
    print()

    # =========================================================================
    # 3. Build Kernels
    # =========================================================================
    print("3. Building integration kernels...")

    cpty = HazardCurve(
        grid.as_of, credit_cfg.hazard_rate_counterparty, credit_cfg.cpty_recovery
    )
    own = HazardCurve(grid.as_of, credit_cfg.hazard_rate_own, credit_cfg.own_recovery)
    kernels = build_kernels(grid.as_of, grid.dates, cpty, own, credit_cfg.unilateral)
    credit = CreditInputs(
        cpty_recovery=credit_cfg.cpty_recovery,
        own_recovery=credit_cfg.own_recovery,
        default_probability=cpty.one_year_default_probability(),
    )

    print(f"   Counterparty default mass: {kernels[0].total:.4%}")
    print(f"   Own default mass: {kernels[1].total:.4%}")
    print(f"   One-year PD: {credit.default_probability:.4%}")
    print()

    # =========================================================================
    # 4. Batch Calculation
    # =========================================================================
    print("4. Calculating measures (batch)...")

    batch = BatchCalculations(table, grid, kernels, credit)
    batch_summary = create_measure_summary(batch, config.measures)

    for _, row in batch_summary.iterrows():
        print(f"   {row['Measure']:<20} {format_currency(row['Value']):>14}")
    print()

    # =========================================================================
    # 5. Streaming Calculation
    # =========================================================================
    print(f"5. Calculating measures (streaming, {config.n_shards} shards)...")

    streaming = StreamingCalculations(grid, kernels, credit)
    for request in config.measures:
        streaming.add_measure_accumulator(request.measure, request.confidence)
    for name in ("EE", "NEE", "DiscountedEE", "PFE"):
        streaming.add_measure_accumulator(name)

    bounds = [round(i * table.n_paths / config.n_shards) for i in range(config.n_shards + 1)]
    shards = [table.subset(slice(lo, hi)) for lo, hi in zip(bounds, bounds[1:])]
    streaming.accumulate_in_parallel(shards)
    streaming_summary = create_measure_summary(streaming, config.measures)

    max_diff = (streaming_summary["Value"] - batch_summary["Value"]).abs().max()
    print(f"   Paths accumulated: {streaming.n_paths}")
    print(f"   Max difference vs batch: {max_diff:.3e}")
    print()

    # =========================================================================
    # 6. Regulatory Capital
    # =========================================================================
    print("6. Calculating regulatory capital...")

    capital = create_capital_table(batch)
    for _, row in capital.iterrows():
        print(f"   {row['Component']:<20} {row['Value']:>14,.4f}")
    print()

    # =========================================================================
    # 7. Export Results
    # =========================================================================
    print("7. Exporting results...")

    output_dir = Path(__file__).parent / "outputs"
    files = create_summary_report(batch, config.measures, output_dir, prefix="demo")

    for name, path in files.items():
        print(f"   Saved: {path}")

    print()
    print("=" * 60)
    print("Demo complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
