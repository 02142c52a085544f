#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from typing import Callable, Tuple

from adbcleaner.adb import AdbClient
from adbcleaner.catalog import Catalog
from adbcleaner.config import CONFIG_FILE, Config, load_config
from adbcleaner.errors import AdbCleanerError, DeviceError
from adbcleaner.models import Device
from adbcleaner.ui_app import AdbCleanerApp

def bootstrap(
    config_path: str = CONFIG_FILE,
    client_factory: Callable[[str], AdbClient] = AdbClient,
) -> Tuple[Config, AdbClient, Device, Catalog]:
    cfg = load_config(config_path)
    client = client_factory(cfg.adb_path)
    if not client.is_available():
        raise DeviceError(f"adb not found or not runnable: {cfg.adb_path}")
    device = client.get_device(cfg.user_id)

    catalog = Catalog()
    catalog.load(cfg.packages_file)
    catalog.refresh_installed(client.list_packages("all"))
    if cfg.auto_select_safe:
        catalog.select_safe()
    return cfg, client, device, catalog

def main() -> None:
    ap = argparse.ArgumentParser(description="Select and remove unwanted apps from an Android device over adb.")
    ap.add_argument("--config", default=CONFIG_FILE)
    args = ap.parse_args()
    try:
        cfg, client, device, catalog = bootstrap(args.config)
    except (OSError, AdbCleanerError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    AdbCleanerApp(cfg, client, device, catalog).run()

if __name__ == "__main__":
    main()
