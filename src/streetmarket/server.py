"""StreetMarket runner — HTTP API and timers on one event loop.

Usage:
    streetmarket                                  # in-memory, empty marketplace
    streetmarket --store data/market.json --demo  # persistent, with demo data
"""

import argparse
import os

import structlog
import uvicorn

from streetmarket.api.app import create_app
from streetmarket.demo import load_demo_data
from streetmarket.domain import streetmarket
from streetmarket.marketplace import Marketplace
from streetmarket.persistence.store import JsonFileStore, MemoryStore
from streetmarket.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def build_marketplace(store_path: str | None = None, demo: bool = False) -> Marketplace:
    streetmarket.init()

    store = JsonFileStore(store_path) if store_path else MemoryStore()
    marketplace = Marketplace(store=store)
    with streetmarket.domain_context():
        marketplace.start()
        if demo:
            load_demo_data(marketplace)
    return marketplace


def main(argv=None):
    parser = argparse.ArgumentParser(description="StreetMarket local marketplace simulator")
    parser.add_argument("--store", help="Path of the JSON snapshot file (default: keep state in memory)")
    parser.add_argument("--demo", action="store_true", help="Seed demo vendors and log in the demo customer")
    parser.add_argument("--host", default=os.getenv("STREETMARKET_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("STREETMARKET_PORT", "8000")))
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)
    marketplace = build_marketplace(args.store, demo=args.demo)
    logger.info("Starting StreetMarket", host=args.host, port=args.port, store=args.store or "memory")

    uvicorn.run(create_app(marketplace), host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
