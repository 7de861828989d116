#!/usr/bin/env python3

"""Print the pool's rate curve for a config.

Usage:
  python3 scripts/rate_curve.py [--config pool.json] [--points 12]

Rows are (total_locked in whole units, rate in bps, rate in %). The final row
is the floor threshold where the rate first equals minimum_rate.
"""

from __future__ import annotations

import argparse
import json
import sys

from stakepool.runtime.pool_config import load_pool_config


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Print the stake pool rate curve")
    ap.add_argument("--config", default=None, help="pool config JSON (default: STAKEPOOL_CONFIG_PATH or built-in)")
    ap.add_argument("--points", type=int, default=12, help="number of sample points up to the floor threshold")
    ap.add_argument("--json", action="store_true", help="emit JSON instead of a table")
    args = ap.parse_args(argv)

    cfg = load_pool_config(config_path=args.config)
    model = cfg.rate_model()
    unit = 10**cfg.asset_decimals
    threshold = model.floor_threshold()
    n = max(int(args.points), 1)

    rows = []
    for i in range(n + 1):
        total = (threshold * i) // n
        r = model.rate(total)
        rows.append({"total_locked_units": total // unit, "rate_bps": r, "rate_pct": r / 100})

    if args.json:
        print(json.dumps({"pool_id": cfg.pool_id, "floor_threshold": str(threshold), "rows": rows}, indent=2))
        return 0

    print(f"pool={cfg.pool_id} kind={model.kind} floor_threshold_units={threshold // unit}")
    for row in rows:
        print(f"{row['total_locked_units']:>16}  {row['rate_bps']:>6} bps  {row['rate_pct']:>7.2f}%")
    return 0


if __name__ == "__main__":
    sys.exit(main())
