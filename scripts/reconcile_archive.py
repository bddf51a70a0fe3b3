#!/usr/bin/env python3
"""CLI script to reconcile a project archive offline.

Usage:
    python scripts/reconcile_archive.py projects.zip
    python scripts/reconcile_archive.py projects.zip --leads leads.json --include-unchanged
    python scripts/reconcile_archive.py projects.zip --extract-only

Without --leads, leads are fetched from the CRM configured through the
environment or .env file (CRM_API_KEY, CRM_LEAD_FILTER, ...). Prints the same
JSON body the HTTP endpoints return. Exit code 1 on any failure.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any

# Ensure project root is on sys.path so we can import src.app
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.app.api.middleware.logging import configure_structlog  # noqa: E402
from src.app.config import get_settings  # noqa: E402
from src.app.crm.adapter import LeadSource  # noqa: E402
from src.app.crm.close import CloseLeadClient  # noqa: E402
from src.app.projects.archive import extract_archive  # noqa: E402
from src.app.projects.pipeline import extraction_response, run_pipeline  # noqa: E402


class FileLeadSource(LeadSource):
    """Leads loaded from a JSON file: a list, or a Close-style ``{"data": [...]}`` page."""

    def __init__(self, path: str) -> None:
        self._path = path

    async def fetch_leads(self) -> list[dict[str, Any]]:
        with open(self._path, encoding="utf-8") as f:
            payload = json.load(f)
        if isinstance(payload, dict):
            payload = payload.get("data", [])
        return list(payload)


async def run(args: argparse.Namespace) -> dict[str, Any]:
    with open(args.archive, "rb") as f:
        archive = f.read()

    if args.extract_only:
        return extraction_response(await extract_archive(archive))

    settings = get_settings()
    if args.leads:
        lead_source: LeadSource = FileLeadSource(args.leads)
    else:
        lead_source = CloseLeadClient(
            api_key=settings.CRM_API_KEY,
            lead_filter=settings.CRM_LEAD_FILTER,
            base_url=settings.CRM_BASE_URL,
            page_size=settings.CRM_PAGE_SIZE,
            timeout=settings.CRM_TIMEOUT,
        )

    result = await run_pipeline(
        archive,
        lead_source,
        url_field=args.url_field or settings.CRM_URL_FIELD,
        stage_field=args.stage_field or settings.CRM_STAGE_FIELD,
    )
    return result.to_response(include_unchanged=args.include_unchanged)


def main() -> None:
    parser = argparse.ArgumentParser(description="Reconcile CRM lead stages against a project archive")
    parser.add_argument("archive", help="ZIP archive of project XML files")
    parser.add_argument("--leads", help="JSON file of leads (skips the CRM fetch)")
    parser.add_argument("--url-field", help="Lead field holding the project URL (default: CRM_URL_FIELD)")
    parser.add_argument("--stage-field", help="Lead field holding the stage (default: CRM_STAGE_FIELD)")
    parser.add_argument("--extract-only", action="store_true", help="Only extract projects, no reconciliation")
    parser.add_argument(
        "--include-unchanged",
        action="store_true",
        help="Also list matched leads whose stage already agrees",
    )
    args = parser.parse_args()

    configure_structlog()
    try:
        body = asyncio.run(run(args))
    except Exception as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        sys.exit(1)

    print(json.dumps(body, indent=2))


if __name__ == "__main__":
    main()
