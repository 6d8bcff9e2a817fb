"""Analyze one Solana token and print its risk report as JSON.

Usage:
    python scripts/analyze_token.py <MINT_ADDRESS>
    python scripts/analyze_token.py <MINT_ADDRESS> --log-level DEBUG --log-file scan.log
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402

from config.settings import settings  # noqa: E402
from src.parsers.analyzer import TokenAnalyzer  # noqa: E402
from src.parsers.exceptions import InvalidAddressError, MarketDataUnavailableError  # noqa: E402
from src.utils.logger import setup_logger  # noqa: E402

EXIT_INVALID_ADDRESS = 2
EXIT_NO_MARKET_DATA = 3


async def run(mint: str) -> int:
    analyzer = TokenAnalyzer.create(settings)
    try:
        report = await analyzer.analyze(mint)
    except InvalidAddressError as e:
        logger.error(f"[CLI] {e}")
        return EXIT_INVALID_ADDRESS
    except MarketDataUnavailableError as e:
        logger.error(f"[CLI] {e}")
        return EXIT_NO_MARKET_DATA
    finally:
        await analyzer.close()

    print(json.dumps(report.to_dict(), indent=2, default=str))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Meme token trust scanner")
    parser.add_argument("mint", help="Token mint address")
    parser.add_argument("--log-level", default=settings.log_level, help="Console log level")
    parser.add_argument("--log-file", default=None, help="Also write DEBUG logs to this file")
    parser.add_argument("--json-logs", action="store_true", default=settings.json_logs)
    args = parser.parse_args()

    setup_logger(json_logs=args.json_logs, level=args.log_level, log_file=args.log_file)
    sys.exit(asyncio.run(run(args.mint)))


if __name__ == "__main__":
    main()
