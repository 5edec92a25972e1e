import argparse
import asyncio
import logging

from catalog_dashboard import logging_setup
from catalog_dashboard.constants import Topic
from catalog_dashboard.data_layer import DataLayer
from catalog_dashboard.schemas.analytics import MetricsSnapshot
from catalog_dashboard.settings import get_settings

logger = logging.getLogger(__name__)


def _log_snapshot(snapshot: MetricsSnapshot) -> None:
    logger.info(
        f"active_users={snapshot.active_users} current_sales={snapshot.current_sales} "
        f"top_products={len(snapshot.top_products)} recent_orders={len(snapshot.recent_orders)}"
    )


async def watch(duration: float, interval: float) -> int:
    cfg = get_settings().model_copy(update={"metrics_poll_seconds": interval})
    async with DataLayer(cfg) as layer:
        layer.bus.subscribe(Topic.METRICS_UPDATED, _log_snapshot)
        await layer.sync.collect_metrics()
        await asyncio.sleep(duration)
        return layer.sync.metrics_task.tick_count + 1


def main():
    p = argparse.ArgumentParser(description="Poll realtime dashboard metrics and log every snapshot")
    p.add_argument("--duration", type=float, default=60.0, help="How long to watch, in seconds")
    p.add_argument("--interval", type=float, default=get_settings().metrics_poll_seconds, help="Poll interval in seconds")
    p.add_argument("--log_level", default=get_settings().log_level, help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    a = p.parse_args()

    # Initialize logging
    logging_setup.setup_logging(a.log_level)

    polls = asyncio.run(watch(a.duration, a.interval))
    logger.info(f"Collected {polls} snapshots")

if __name__ == "__main__":
    main()
