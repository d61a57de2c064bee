#!/usr/bin/env python3
"""
Mount Hood Sunrise Planning -- line-of-sight Demo

Walks through a photography plan for the Mount Hood summit:
    elevation -> horizon rise/set from Trillium Lake ->
    hourly sun alignment path -> best alignment -> elevation profile ->
    photographer positions -> cache status

Usage:
    python examples/mount_hood_demo.py

Requirements:
    pip install line-of-sight
    (Requires network access to the Mapzen terrain tiles bucket on S3)
"""

import asyncio

from line_of_sight import GeoCoordinate, LineOfSightManager, Observer
from line_of_sight.config import configure_logging
from line_of_sight.models import format_response

# -- Configuration -----------------------------------------------------------

SUMMIT = GeoCoordinate(45.3736, -121.6960)
TRILLIUM_LAKE = GeoCoordinate(45.2676, -121.7364)
DAY = "2024-06-21"
TZ = "America/Los_Angeles"


# -- Main pipeline -----------------------------------------------------------


async def main() -> None:
    configure_logging()
    manager = LineOfSightManager()

    print("=" * 60)
    print("Mount Hood -- Sun Alignment & Horizon Planning")
    print("=" * 60)

    # Step 1: Summit elevation
    print("\nStep 1: Summit elevation...")
    summit_elevation = await manager.elevation(SUMMIT)
    if summit_elevation is None:
        print("  ERROR: no elevation data for the summit (offline?)")
        return
    print(f"  Summit: {summit_elevation:.0f}m")

    # Step 2: Sunrise and sunset over the real horizon
    print("\nStep 2: Terrain horizon from Trillium Lake...")
    lake_elevation = await manager.elevation(TRILLIUM_LAKE) or 1090.0
    observer = Observer(TRILLIUM_LAKE, lake_elevation + 1.7, name="Trillium Lake")

    def progress(fraction: float) -> None:
        if round(fraction * 100) % 25 == 0:
            print(f"  ... {fraction:.0%}")

    horizon = await manager.calculate_horizon_events(
        observer, DAY, tz=TZ, progress_callback=progress
    )
    print(format_response(horizon, "text"))

    # Step 3: Where the sun-summit line lands each hour
    print("\nStep 3: Hourly sun alignment path...")
    path = await manager.compute_sun_alignment_path(SUMMIT, DAY, TZ)
    for point in path:
        print(f"  {point.to_text()}")
    if not path:
        print("  No alignment points (the sun is too high or the line never lands)")

    # Step 4: Best alignment for a sunrise shot
    print("\nStep 4: Best alignment toward the morning sun...")
    best = await manager.find_best_alignment_time(SUMMIT, DAY, TZ, preferred_azimuth=60.0)
    if best is not None:
        print(f"  {best.to_text()}")

        profile = await manager.alignment_elevation_profile(SUMMIT, best, samples=10)
        print("  Terrain from the alignment point to the summit:")
        for sample in profile:
            print(f"    {sample.to_text()}")

    # Step 5: Photographer positions
    print("\nStep 5: Photographer positions (06:00-09:00 local)...")
    positions = await manager.compute_photographer_positions(
        SUMMIT, DAY, TZ, hours=[6, 7, 8, 9]
    )
    for pos in positions:
        print(f"  {pos.to_text()}")

    # Summary
    status = manager.cache_status()
    print("\n" + "=" * 60)
    print("Demo complete!")
    print(f"  Source: {status['source']}")
    print(f"  Tiles in memory: {status['memory_tiles']}/{status['memory_limit']}")
    print(f"  Disk cache: {status['disk_bytes'] / 1e6:.1f} MB in {status['disk_dir']}")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
