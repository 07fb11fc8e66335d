# =============================================================================
# utils/reporting.py - Console rendering of comparison results
# =============================================================================

from datetime import date
from typing import List, Dict, Any, Optional

import pandas as pd


def render_table(rows: List[Dict[str, Any]], columns: List[str]) -> str:
    """Render rows as a fixed-column text table"""
    if not rows:
        return "(no results)"

    frame = pd.DataFrame(rows, columns=columns).fillna("")
    return frame.to_string(index=False)


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse an HR export date; None when blank or unparseable"""
    if not value or not str(value).strip():
        return None

    parsed = pd.to_datetime(str(value).strip(), errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()
