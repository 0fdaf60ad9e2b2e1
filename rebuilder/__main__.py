#!/usr/bin/env python3
"""
Entry point for running as module: python -m rebuilder
"""

import asyncio

from rebuilder.app import main


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
