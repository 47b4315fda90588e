#!/usr/bin/env python3
"""Warm the geocode cache for a list of organisation names.

Names are read one per line from a text file, or from a JSON list. By default
the names are resolved in-process through GeocodeService and written to the
configured cache file; with --server they are POSTed to a running API
instead so the server's own cache is warmed.

Usage:
    python scripts/warm_geocode_cache.py clubs.txt
    python scripts/warm_geocode_cache.py clubs.json --concurrency 5
    python scripts/warm_geocode_cache.py clubs.txt --server http://localhost:5010
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import requests
from dotenv import load_dotenv, find_dotenv

from discover_cymru.config import get_geocode_api_key, reset_config
from discover_cymru.src.app import create_geocode_service


def read_names(path: Path) -> list[str]:
    """Read organisation names from a .json list or a newline-separated file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a JSON list of names")
        names = [n for n in data if isinstance(n, str)]
    else:
        names = text.splitlines()
    return list(dict.fromkeys(n.strip() for n in names if n.strip()))


async def warm_local(names: list[str], concurrency: int | None) -> dict:
    service = create_geocode_service()
    results = await service.resolve_batch(names, get_geocode_api_key(), concurrency=concurrency)
    print(f"[WARM] Cache file: {service.cache.path} ({len(service.cache)} entries)")
    return results


def warm_remote(names: list[str], server: str, timeout: float) -> dict:
    url = server.rstrip("/") + "/api/geocode"
    resp = requests.post(url, json={"organizationNames": names}, timeout=timeout)
    if resp.status_code != 200:
        raise RuntimeError(f"{url} returned HTTP {resp.status_code}: {resp.text[:200]}")
    return resp.json().get("results", {})


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Warm the Discover Cymru geocode cache")
    parser.add_argument("names_file", type=Path, help="Text file (one name per line) or JSON list")
    parser.add_argument("--concurrency", type=int, default=None, help="Provider calls per group")
    parser.add_argument("--server", help="Base URL of a running API; resolve there instead of locally")
    parser.add_argument("--timeout", type=float, default=300.0, help="HTTP timeout for --server mode")
    args = parser.parse_args(argv)

    load_dotenv(find_dotenv())
    reset_config()

    names = read_names(args.names_file)
    if not names:
        print("[WARM] No names found")
        return 1
    print(f"[WARM] {len(names)} unique names")

    if args.server:
        results = warm_remote(names, args.server, args.timeout)
    else:
        if not get_geocode_api_key():
            print("[WARM] GOOGLE_MAPS_API_KEY is not set")
            return 2
        results = asyncio.run(warm_local(names, args.concurrency))

    found = sum(1 for v in results.values() if v is not None)
    print(f"[WARM] Resolved {found}/{len(results)}")
    for name, coords in results.items():
        if coords is None:
            print(f"  ✗ {name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
