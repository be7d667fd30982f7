#!/usr/bin/env python3
"""
Drive the intake form controller against a running proxy.

Start the API first (in another terminal):
  uvicorn src.api.main:app --host 127.0.0.1 --port 8000

Then submit a form (JSON object of form field values, "service" as a list):
  python scripts/submit_inspection.py --form form.json --page-url "http://localhost:8000/?tenant=extoz"

Or confirm a request from a verification link:
  python scripts/submit_inspection.py --verify --page-url "http://localhost:8000/verify?tenant=extoz&idempotencyKey=abc"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from urllib.parse import urlparse

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.intake.controller import (  # noqa: E402
    PAGE_INSPECTION,
    PAGE_VERIFY,
    InspectionForm,
    IntakeController,
    query_from_url,
    verify_intro_message,
)
from src.utils.config_loader import load_intake_config  # noqa: E402


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


async def run(args: argparse.Namespace) -> int:
    cfg = load_intake_config(Path(args.config) if args.config else None)
    page = urlparse(args.page_url)
    controller = IntakeController(
        cfg.controller,
        api_base_url=args.base_url,
        timeout_seconds=cfg.upstream.timeout_seconds,
        origin=f"{page.scheme}://{page.netloc}" if page.netloc else None,
    )

    query = query_from_url(args.page_url)
    element_ids = ["verification-cta"] if args.verify else ["inspection-form"]
    pages = await controller.boot(query, element_ids)
    print(f"Tenant: {controller.tenant} (config: {controller.load_result.status})")
    if not pages:
        print("Tenant configuration could not be loaded.")
        return 1

    if PAGE_VERIFY in pages:
        intro = verify_intro_message(query.get("target"))
        if intro:
            print(intro)
        outcome = await controller.verify(query)
    elif PAGE_INSPECTION in pages:
        if not args.form:
            print("--form is required to submit an inspection request.")
            return 2
        data = json.loads(Path(args.form).read_text(encoding="utf-8"))
        services = data.pop("service", [])
        form = InspectionForm(fields=data, services=services if isinstance(services, list) else [services])
        outcome = await controller.submit_inspection(form)
    else:
        return 1

    print(outcome.message)
    if outcome.status_code is not None:
        print(f"HTTP {outcome.status_code}")
    for field_name, message in outcome.field_errors.items():
        print(f"  - {field_name}: {message}")
    if args.verbose and outcome.payload:
        print(json.dumps(outcome.payload, indent=2))
    return 0 if outcome.ok else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Submit an inspection request or verification through the intake proxy")
    parser.add_argument("--base-url", default="http://localhost:8000", help="Proxy base URL")
    parser.add_argument("--page-url", default="http://localhost:8000/", help="Page URL carrying tenant/lang/idempotencyKey/target")
    parser.add_argument("--form", help="JSON file with inspection form field values")
    parser.add_argument("--verify", action="store_true", help="Act as the verification page")
    parser.add_argument("--config", help="Path to intake_config.yml")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    setup_logging(args.verbose)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
