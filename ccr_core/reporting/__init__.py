"""
Reporting module for CCR results.

Provides:
- DataFrame builders for exposure profiles, scalar measures and capital
- CSV/JSON export utilities
"""

from ccr_core.reporting.export import (
    create_summary_report,
    export_to_csv,
    export_to_json,
    format_currency,
)
from ccr_core.reporting.tables import (
    create_capital_table,
    create_measure_summary,
    create_profile_table,
)

__all__ = [
    # Tables
    "create_profile_table",
    "create_measure_summary",
    "create_capital_table",
    # Export
    "export_to_csv",
    "export_to_json",
    "create_summary_report",
    "format_currency",
]
