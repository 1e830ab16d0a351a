"""Production Runner core.

Schedule and budget aggregation for film/TV productions:
- Scene heading parsing and page-length (eighths) formatting
- One-Liner schedules grouped by shoot day
- Day-Out-of-Days cast status grids and statistics
- Budget line-item totals, subtotals and variance
- Call sheet delivery over SMS and email with per-recipient tracking
"""

__version__ = "0.1.0"
