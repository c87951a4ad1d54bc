"""
Command-line entry point.

Usage:
    # Replay a JSON-lines file of camelCase trades
    python -m launch_monitor replay trades.jsonl

    # Replay raw indexer events and print alerts as broadcast envelopes
    python -m launch_monitor replay events.jsonl --indexer --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from launch_monitor.alerter.formatter import AlertFormatter, format_broadcast
from launch_monitor.config import get_settings
from launch_monitor.ingestor.models import TradeParseError, parse_trade
from launch_monitor.monitor import MonitoringService

logger = logging.getLogger(__name__)


class ReplayClock:
    """Clock that tracks the latest trade timestamp seen during a replay."""

    def __init__(self) -> None:
        self.now = 0

    def advance(self, timestamp: int) -> None:
        if timestamp > self.now:
            self.now = timestamp

    def __call__(self) -> int:
        return self.now


def cmd_replay(args: argparse.Namespace) -> int:
    """Feed a recorded trade stream through the monitor."""
    settings = get_settings()
    clock = ReplayClock()
    monitor = MonitoringService(settings, clock=clock)
    formatter = AlertFormatter(verbosity="compact" if args.compact else "detailed")
    sweep_interval = settings.monitor.sweep_interval_ms
    last_sweep: int | None = None

    path = Path(args.file)
    if not path.exists():
        logger.error("Replay file not found: %s", path)
        return 1

    with path.open(encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Skipping line %d: invalid JSON (%s)", line_no, e)
                continue
            if not isinstance(data, dict):
                logger.warning("Skipping line %d: expected a JSON object", line_no)
                continue

            try:
                trade = parse_trade(data, indexer=args.indexer)
            except TradeParseError:
                # The monitor logs and counts the rejection.
                result = monitor.process_payload(data, indexer=args.indexer)
            else:
                clock.advance(trade.timestamp)
                result = monitor.process_trade(trade)
            for alert in result.alerts:
                if args.json:
                    print(json.dumps(format_broadcast(alert)))
                else:
                    print(formatter.format(alert).plain_text)

            if last_sweep is None:
                last_sweep = clock.now
            elif clock.now - last_sweep >= sweep_interval:
                monitor.sweep()
                last_sweep = clock.now

    stats = monitor.stats
    logger.info(
        "Replay complete: %d processed, %d rejected, %d alerts emitted, %d suppressed",
        stats.trades_processed,
        stats.trades_rejected,
        stats.alerts_emitted,
        stats.alerts_suppressed,
    )
    print(json.dumps(monitor.global_stats().to_dict(), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.get_logging_level(),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stderr,
    )

    parser = argparse.ArgumentParser(description="Launch Anomaly Monitor CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay_parser = subparsers.add_parser("replay", help="Replay a JSON-lines trade file")
    replay_parser.add_argument("file", help="Path to a JSON-lines file, one trade per line")
    replay_parser.add_argument(
        "--indexer", action="store_true",
        help="Lines are raw indexer events (isBuy, amounts in base units)",
    )
    replay_parser.add_argument(
        "--json", action="store_true",
        help="Print alerts as broadcast envelopes instead of text",
    )
    replay_parser.add_argument(
        "--compact", action="store_true",
        help="One-line text alerts",
    )
    replay_parser.set_defaults(func=cmd_replay)

    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
