import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.schemas import Contest as ContestSchema
from ingestion.errors import AllSourcesUnavailable, UnknownPlatformError, UpstreamUnavailable
from ingestion.registry import build_default_registry
from ingestion.service import ContestAggregator, summarize_errors


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch the aggregated contest feed once")
    parser.add_argument(
        "--platform",
        default=None,
        help="Fetch a single platform instead of the merged feed",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Per-adapter timeout in seconds")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write JSON to this file instead of stdout",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser.parse_args(argv)


async def _collect(aggregator: ContestAggregator, platform: str | None) -> dict:
    if platform:
        contests = await aggregator.fetch_platform(platform)
        source_errors = {}
    else:
        result = await aggregator.aggregate()
        contests, source_errors = result.contests, summarize_errors(result.source_errors)
    return {
        "contests": [
            ContestSchema.from_domain(contest).model_dump(mode="json", by_alias=True, exclude_none=True)
            for contest in contests
        ],
        "sourceErrors": source_errors,
    }


def main(argv=None, *, aggregator: ContestAggregator | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    if aggregator is None:
        aggregator = ContestAggregator(
            build_default_registry(settings),
            timeout=args.timeout or settings.adapter_timeout_seconds,
        )

    try:
        payload = asyncio.run(_collect(aggregator, args.platform))
    except UnknownPlatformError as exc:
        logger.error("{}", exc)
        return 2
    except (AllSourcesUnavailable, UpstreamUnavailable) as exc:
        logger.error("{}", exc)
        return 1

    for platform, error in payload["sourceErrors"].items():
        logger.warning("{} unavailable: {}", platform, error["message"])

    rendered = json.dumps(payload, indent=2)
    if args.output:
        args.output.write_text(rendered + "\n", encoding="utf-8")
        logger.info("Wrote {} contests to {}", len(payload["contests"]), args.output)
    else:
        sys.stdout.write(rendered + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
