"""Command line entrypoint: suggest an outfit from the locally stored wardrobe."""

from __future__ import annotations

import argparse
import asyncio
import json

from closet_app.app import VirtualClosetApp
from closet_app.config import ClosetConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Suggest an outfit from your virtual closet.")
    parser.add_argument("intent", nargs="?", default="", help="What the outfit is for")
    parser.add_argument("--store", help="Directory of the JSON wardrobe store")
    parser.add_argument("--relay", help="Relay endpoint URL overriding RELAY_ENDPOINT")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    config = ClosetConfig.from_env()
    if args.store:
        config.wardrobe_store_path = args.store
    if args.relay:
        config.relay_endpoint = args.relay

    app = VirtualClosetApp(config=config)
    result = asyncio.run(app.generate_outfit(intent=args.intent))
    print(result.user_message)
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
