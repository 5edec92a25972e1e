import argparse
import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from catalog_dashboard import logging_setup
from catalog_dashboard.data_layer import DataLayer
from catalog_dashboard.settings import get_settings

logger = logging.getLogger(__name__)


async def export(out: Path, export_format: str, start: Optional[str], end: Optional[str]) -> Optional[Path]:
    cfg = get_settings().model_copy(update={"auto_refresh": False})
    async with DataLayer(cfg) as layer:
        view = layer.analytics_view()
        if start:
            view.filters.start_date = date.fromisoformat(start)
        if end:
            view.filters.end_date = date.fromisoformat(end)

        if export_format == "sales-csv":
            # Client-side table built from the aggregate
            await view.load_analytics()
            return view.export_csv(out)
        return await view.export_data(export_format, out)


def main():
    p = argparse.ArgumentParser(description="Export dashboard analytics for a date range")
    p.add_argument("--out", required=True, help="Path of the exported file")
    p.add_argument("--format", default="sales-csv", help="'sales-csv' (built locally) or a server export format (csv, xlsx, ...)")
    p.add_argument("--start", help="Start date (YYYY-MM-DD), default 30 days ago")
    p.add_argument("--end", help="End date (YYYY-MM-DD), default today")
    p.add_argument("--log_level", default=get_settings().log_level, help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    a = p.parse_args()

    # Initialize logging
    logging_setup.setup_logging(a.log_level)

    written = asyncio.run(export(Path(a.out), a.format, a.start, a.end))
    if written is None:
        logger.error("Nothing exported")
        raise SystemExit(1)
    logger.info(f"Wrote {written}")

if __name__ == "__main__":
    main()
