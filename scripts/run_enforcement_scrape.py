"""
Run one enforcement scrape from CLI and print its summary.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal

from app.scraping.errors import ScrapingError
from app.services.enforcement_scraping_service import build_coordinator


def _parse_params(pairs: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise SystemExit(f"--param expects KEY=VALUE, got {pair!r}")
        key, value = pair.split("=", 1)
        params[key.strip()] = value.strip()
    return params


def main() -> int:
    parser = argparse.ArgumentParser(description="Run enforcement record scraping for one agency.")
    parser.add_argument("agency", help="hse or ea")
    parser.add_argument("enforcement_type", help="case or notice")
    parser.add_argument(
        "--param",
        dest="params",
        action="append",
        default=[],
        help="Strategy parameter as KEY=VALUE (repeatable), e.g. max_pages=3 or date_from=2026-01-01.",
    )
    parser.add_argument("--actor", default=os.getenv("USER"), help="Recorded as the session actor.")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    coordinator = build_coordinator(max_workers=1)
    try:
        handle = coordinator.start(
            agency=args.agency,
            enforcement_type=args.enforcement_type,
            raw_params=_parse_params(args.params),
            actor=args.actor,
        )
    except ScrapingError as exc:
        print(json.dumps({"error": str(exc)}, indent=2))
        coordinator.shutdown()
        return 2

    signal.signal(signal.SIGINT, lambda *_: coordinator.stop(handle.session_id))
    session = coordinator.wait(handle.session_id)
    coordinator.shutdown()

    payload = {
        "summary": coordinator.summary(session.session_id).__dict__,
        "session": session.to_dict(),
    }
    print(json.dumps(payload, indent=2, default=str))
    return 0 if session.status == "completed" else 1


if __name__ == "__main__":
    raise SystemExit(main())
