from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd


def equity_frame(curve: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(curve, columns=["timestamp", "equity", "cash", "realized_pnl", "unrealized_pnl"])
    if not df.empty:
        df["time"] = pd.to_datetime(df["timestamp"], unit="ms", utc=True)
    return df


def write_equity_curve(curve: List[Dict[str, Any]], output_dir: str) -> Optional[Path]:
    """Write the equity curve as CSV; nothing is written for an empty curve."""
    df = equity_frame(curve)
    if df.empty:
        return None
    outdir = Path(output_dir)
    outdir.mkdir(parents=True, exist_ok=True)
    out_csv = outdir / "equity_curve.csv"
    df.to_csv(out_csv, index=False)
    return out_csv
