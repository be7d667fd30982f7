#!/usr/bin/env python3
"""
Validate every tenant configuration file and report which upstream flows
each tenant has configured.

  python scripts/check_tenants.py
  python scripts/check_tenants.py --tenants-dir /path/to/tenants
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.gateway.pipeline import FLOW_INSPECTION, FLOW_VERIFY, select_upstream_url  # noqa: E402
from src.tenancy.resolver import FileTenantSource, TenantResolver, sanitize_tenant_id  # noqa: E402
from src.utils.config_loader import load_intake_config  # noqa: E402


async def check(directory: Path) -> int:
    resolver = TenantResolver(FileTenantSource(directory))
    files = sorted(directory.glob("*.json"))
    if not files:
        print(f"No tenant files found in {directory}")
        return 1

    failures = 0
    for path in files:
        tenant_id = path.stem
        if sanitize_tenant_id(tenant_id) != tenant_id:
            print(f"[WARN] {path.name}: file name is not a valid tenant id and can never be resolved")
            failures += 1
            continue

        tenant = await resolver.resolve(tenant_id)
        if tenant is None:
            print(f"[FAIL] {tenant_id}: unreadable or invalid configuration")
            failures += 1
            continue

        verify_url = select_upstream_url(tenant, FLOW_VERIFY) or "-"
        inspection_url = select_upstream_url(tenant, FLOW_INSPECTION) or "-"
        origins = ", ".join(tenant.allowed_origins) or "(any)"
        print(f"[OK]   {tenant_id}")
        print(f"       origins:    {origins}")
        print(f"       verify:     {verify_url}")
        print(f"       inspection: {inspection_url}")
        print(f"       services:   {', '.join(tenant.service_ids()) or '-'}")
    return 1 if failures else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate tenant configuration files")
    parser.add_argument("--tenants-dir", help="Directory of <tenant>.json files (default: from config)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    directory = Path(args.tenants_dir) if args.tenants_dir else load_intake_config().tenants.resolved_directory()
    return asyncio.run(check(directory))


if __name__ == "__main__":
    sys.exit(main())
