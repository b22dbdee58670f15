"""Protean Engine runner for the orderflow domain.

With the production overlay (event_processing = "async") projectors and the
notification dispatcher no longer run inside the unit of work; the Engine
picks their events up and runs them.

Usage:
    PROTEAN_ENV=production python src/server.py
    python src/server.py --test-mode   # drain pending events, then exit
"""

import argparse
import asyncio

from protean.server.engine import Engine


def _get_domain():
    from orderflow.domain import orderflow

    orderflow.init()
    return orderflow


async def run(test_mode: bool = False):
    engine = Engine(_get_domain(), test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Orderflow Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending events once and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(test_mode=args.test_mode))


if __name__ == "__main__":
    main()
