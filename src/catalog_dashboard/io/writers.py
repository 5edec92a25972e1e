from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from catalog_dashboard.constants import SALES_EXPORT_COLUMNS


def atomic_write_bytes(data: bytes, out: Path) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    tmp = out.with_suffix(out.suffix + ".tmp")
    tmp.write_bytes(data)
    tmp.replace(out)             # atomic replace on same filesystem


def atomic_write_csv(df: pd.DataFrame, out: Path) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    tmp = out.with_suffix(out.suffix + ".tmp")
    df.to_csv(tmp, index=False)
    tmp.replace(out)


def sales_frame(sales: List[Dict[str, Any]]) -> pd.DataFrame:
    """Sales series as the Date,Sales,Revenue,Customers table of the CSV export."""
    df = pd.DataFrame(sales, columns=["date", "amount", "revenue", "customers"])
    df.columns = SALES_EXPORT_COLUMNS
    return df
