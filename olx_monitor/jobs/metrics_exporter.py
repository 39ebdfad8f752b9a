"""Append cycle metrics to a JSONL file."""
import time
from pathlib import Path
from typing import Dict
import aiofiles
import orjson

from olx_monitor.config import METRICS_FILE


class MetricsExporter:
    """Exports one metrics line per scrape cycle."""

    def __init__(self, cycle_id: str, metrics_file: Path = METRICS_FILE):
        self.cycle_id = cycle_id
        self.metrics_file = metrics_file

    async def export_metrics(self, summary: Dict) -> None:
        line = orjson.dumps({"ts": time.time(), "cycle_id": self.cycle_id, **summary})
        async with aiofiles.open(self.metrics_file, "ab") as f:
            await f.write(line + b"\n")
