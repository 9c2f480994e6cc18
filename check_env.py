#!/usr/bin/env python3
"""Check the ZenRoute .env file and probe the configured services."""

import asyncio
import os
import sys
from pathlib import Path

SECRET_KEYS = ("ZENROUTE_SUPABASE_KEY", "ZENROUTE_GOOGLE_MAPS_API_KEY")

TEMPLATE = """# Google Maps Directions (without a key every request is answered with demo routes)
ZENROUTE_GOOGLE_MAPS_API_KEY=your-directions-api-key

# Supabase route history (optional)
ZENROUTE_SUPABASE_URL=https://your-project-id.supabase.co
ZENROUTE_SUPABASE_KEY=your-service-role-key-here

# API Configuration
ZENROUTE_API_PREFIX=/api
# ZENROUTE_FRONTEND_ALLOWED_ORIGINS=["http://localhost:8081"]

# Route evaluation
ZENROUTE_ROUTE_CACHE_TTL_SECONDS=300
ZENROUTE_TRAFFIC_MODERATE_RATIO=1.2
ZENROUTE_TRAFFIC_HEAVY_RATIO=1.5
"""


def _mask(value: str) -> str:
    if len(value) > 20:
        return value[:12] + "..." + value[-6:]
    return "***"


def _print_env_file(env_file: Path) -> None:
    print(f"Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        name, sep, value = line.partition("=")
        if sep and name.strip() in SECRET_KEYS:
            print(f"{name}={_mask(value.strip())}")
        else:
            print(line)
    print("-" * 60)


def main() -> int:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("ZenRoute environment checker")
    print("=" * 60)

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"Created template .env file at: {env_file}")
        print("Edit it and add your Directions API key and Supabase credentials.")
        return 1
    _print_env_file(env_file)

    sys.path.insert(0, str(project_root / "src"))
    try:
        from zenroute.config import settings
        from zenroute.services.routes.directions_client import DirectionsGateway
    except Exception as e:
        print(f"Error loading config: {e}")
        return 1

    for name in SECRET_KEYS + ("ZENROUTE_SUPABASE_URL",):
        source = "environment" if os.getenv(name) else ".env/defaults"
        print(f"{name}: read from {source}")

    gateway = DirectionsGateway()
    if not gateway.configured:
        print("Directions API key missing: demo routes will be served.")
    else:
        healthy = asyncio.run(gateway.check_health())
        print(f"Directions API reachable: {healthy}")

    if settings.supabase_url and settings.supabase_key:
        print("Supabase is configured; route history is enabled.")
    else:
        print("Supabase is NOT configured; route history endpoints return 503.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
