"""
Waterfall reports.

Main API:
    waterfall_frame - Recognized amount per contract and period
    deferred_frame - Deferred balance per contract after each period
    summary_frame - Totals row of either frame
    export_csv - Two-decimal CSV text
"""

from .waterfall import deferred_frame, export_csv, summary_frame, waterfall_frame

__all__ = ["deferred_frame", "export_csv", "summary_frame", "waterfall_frame"]
