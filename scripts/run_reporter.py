#!/usr/bin/env python3
"""Run the sensor reporter against an integration endpoint.

Reads battery, storage and last-reboot sensors with psutil, registers
them with the endpoint and pushes their state periodically.

Usage
-----
Set environment variables and run::

    export SENSORSYNC_BASE_URL="http://homeassistant.local:8123"
    export SENSORSYNC_WEBHOOK_ID="0123456789abcdef"
    export SENSORSYNC_STORE_PATH="~/.local/state/sensorsync.json"
    python scripts/run_reporter.py

Options::

    --once               Run a single pass and exit
    --trigger CATEGORY   Category of the single pass (default: periodic_tick)
    --storage-path PATH  Mount point measured by the storage sensor
    --verbose            Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from sensorsync import (  # noqa: E402
    DeviceContext,
    IntegrationClient,
    MemorySensorStore,
    ReconciliationEngine,
    SensorReporter,
    SensorSyncConfig,
    SensorSyncError,
    TriggerCategory,
)
from sensorsync.providers import (  # noqa: E402
    BatterySensorProvider,
    LastRebootSensorProvider,
    ProviderRegistry,
    StorageSensorProvider,
)
from sensorsync.state import JsonFileSensorStore, SensorStore  # noqa: E402


async def _open_store(config: SensorSyncConfig) -> SensorStore:
    if config.store_path:
        return await JsonFileSensorStore.open(config.store_path)
    return MemorySensorStore()


async def main() -> int:
    parser = argparse.ArgumentParser(description="Report local sensors to an integration endpoint.")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    parser.add_argument(
        "--trigger",
        default=TriggerCategory.PERIODIC_TICK.value,
        choices=[c.value for c in TriggerCategory],
        help="Trigger category of the single pass",
    )
    parser.add_argument("--storage-path", default="/", help="Mount point measured by the storage sensor")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = SensorSyncConfig.from_env()
        store = await _open_store(config)
    except SensorSyncError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    registry = ProviderRegistry(
        [BatterySensorProvider(), LastRebootSensorProvider(), StorageSensorProvider()],
    )

    def context() -> DeviceContext:
        return DeviceContext(extras={"storage_path": args.storage_path})

    async with IntegrationClient(config) as client:
        engine = ReconciliationEngine(registry, store, client)
        reporter = SensorReporter.from_config(engine, config)

        if args.once:
            decision = await reporter.trigger(TriggerCategory(args.trigger), context())
            if not decision.proceed:
                print(f"skipped: {decision.reason}")
                return 0
            await reporter.drain()
            for result in reporter.results:
                print(
                    f"registered={result.registered} batch={result.batch} "
                    f"pushed={result.pushed} invalidated={result.invalidated}"
                )
            return 0

        loops = [
            asyncio.create_task(reporter.run_periodic(context)),
            asyncio.create_task(reporter.run_location_loop(context)),
        ]
        try:
            await asyncio.gather(*loops)
        finally:
            for task in loops:
                task.cancel()
            await reporter.close()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)
