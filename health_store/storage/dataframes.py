# =============================================================================
# health_store/storage/dataframes.py
# pandas Bridge for Entity Arrays
# =============================================================================

from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd

Entity = Dict[str, Any]


def clean_value(value: Any) -> Any:
    """Convert pandas/numpy values into JSON-compatible Python values."""
    if isinstance(value, (pd.Timestamp, datetime, date)):
        if pd.isna(value):
            return None
        return value.isoformat()
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return None if np.isnan(value) else float(value)
    if isinstance(value, np.ndarray):
        return [clean_value(item) for item in value.tolist()]
    if isinstance(value, (list, tuple)):
        return [clean_value(item) for item in value]
    if isinstance(value, dict):
        return {key: clean_value(item) for key, item in value.items()}
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def dataframe_to_records(df: pd.DataFrame) -> List[Entity]:
    """
    Convert a DataFrame into entity dicts ready for create().

    NaN/NaT become None, numpy scalars become Python scalars, and
    timestamps become ISO strings.
    """
    if df.empty:
        return []
    return [
        {str(column): clean_value(value) for column, value in row.items()}
        for row in df.to_dict(orient="records")
    ]


def entities_to_dataframe(entities: Iterable[Entity]) -> pd.DataFrame:
    """Load entities into a DataFrame (one column per top-level field)."""
    items = list(entities)
    if not items:
        return pd.DataFrame()
    return pd.DataFrame(items)
