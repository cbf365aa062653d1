#!/usr/bin/env python3
"""
WARP Endpoint Scan CLI

Finds low-latency WARP endpoints and prints the ranked results as JSON.
"""

import argparse
import json
import logging
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .core.logging import setup_logging
from .scan_components.config_helper import ScanConfigError, load_scan_config
from .scan_components.helper import HELPER_BINARY, HelperError, download_helper, run_helper
from .scanner import EndpointScanner

# Configure logger for CLI
logger = logging.getLogger(__name__)


def parse_csv_ints(csv_string: str) -> List[int]:
    """Parse comma-separated integers"""
    if not csv_string:
        return []
    try:
        return [int(x.strip()) for x in csv_string.split(',') if x.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid port list: {e}")


def error_result(message: str) -> Dict[str, Any]:
    return {
        "data": [],
        "error": message,
        "meta": {},
        "result_type": "error"
    }


def make_progress_logger(step_percent: int = 10):
    """Progress observer that logs every ``step_percent`` of completed probes"""
    state = {"next": step_percent}

    def progress(done: int, succeeded: int, total: int):
        if not total:
            return
        percent = done * 100 // total
        if percent >= state["next"] or done == total:
            logger.info(f"Progress: {done}/{total} probed, {succeeded} alive")
            state["next"] = (percent // step_percent + 1) * step_percent

    return progress


def run_scan(args: argparse.Namespace) -> Dict[str, Any]:
    """Run the built-in scanner - returns the JSON envelope"""
    try:
        config = load_scan_config(
            args.config,
            tcp_ports=args.tcp_ports,
            udp_ports=args.udp_ports,
            tcp_timeout=args.tcp_timeout,
            udp_timeout=args.udp_timeout,
            concurrency=args.concurrency,
            seed_addresses=args.seed,
            per_range=args.per_range,
            enable_ipv6=args.ipv6,
            ping_prefilter=args.ping,
            ping_limit=args.ping_limit,
        )
    except ScanConfigError as e:
        logger.error(f"Invalid configuration: {str(e)}")
        return error_result(str(e))

    scanner = EndpointScanner(config)
    report = scanner.scan(progress=make_progress_logger())
    return report.to_dict(top=args.top)


def run_external_helper(args: argparse.Namespace) -> Dict[str, Any]:
    """Scan through the external warpendpoint binary - returns the JSON envelope"""
    try:
        config = load_scan_config(args.config, per_range=args.per_range, enable_ipv6=args.ipv6)
    except ScanConfigError as e:
        logger.error(f"Invalid configuration: {str(e)}")
        return error_result(str(e))

    binary = Path(args.binary)
    try:
        if not binary.exists():
            download_helper(binary, arch=args.arch)

        addresses = config.generator().addresses()
        if args.workdir:
            results = run_helper(binary, addresses, Path(args.workdir))
        else:
            with tempfile.TemporaryDirectory(prefix="warp-scan-") as workdir:
                results = run_helper(binary, addresses, Path(workdir))
    except HelperError as e:
        logger.error(f"Helper scan failed: {str(e)}")
        return error_result(str(e))

    shown = results if args.top is None else results[:args.top]
    return {
        "data": {
            "best": results[0].to_dict() if results else None,
            "results": [result.to_dict() for result in shown]
        },
        "error": None,
        "meta": {"addresses_scanned": len(addresses), "found": len(results)},
        "result_type": "success" if results else "no_results"
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='warp-scan',
        description="WARP Endpoint Scan - find low-latency WARP endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan the default ranges
  warp-scan scan

  # Only UDP 2408, 5 best results
  warp-scan scan --tcp-ports "" --udp-ports 2408 --top 5

  # Always include a known-good address, pre-filter by ping
  warp-scan scan --seed 162.159.192.1 --ping --ping-limit 50

  # Use the external warpendpoint binary instead
  warp-scan helper
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', help='YAML file merged over the packaged defaults')
    common.add_argument('--per-range', type=int, help='Addresses sampled per range')
    common.add_argument('--ipv6', action='store_true', default=None, help='Include IPv6 ranges')
    common.add_argument('--top', type=int, help='Show at most this many results per protocol')
    common.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')

    scan_parser = subparsers.add_parser('scan', parents=[common], help='Probe candidates and rank by latency')
    scan_parser.add_argument('--tcp-ports', type=parse_csv_ints, help='Comma-separated TCP ports')
    scan_parser.add_argument('--udp-ports', type=parse_csv_ints, help='Comma-separated UDP ports')
    scan_parser.add_argument('--tcp-timeout', type=float, help='TCP connect timeout in seconds')
    scan_parser.add_argument('--udp-timeout', type=float, help='UDP handshake timeout in seconds')
    scan_parser.add_argument('--concurrency', type=int, help='Concurrent probes')
    scan_parser.add_argument('--seed', action='append', help='Address always probed first (repeatable)')
    scan_parser.add_argument('--ping', action='store_true', default=None, help='Pre-filter addresses by ICMP ping')
    scan_parser.add_argument('--ping-limit', type=int, help='Keep only this many lowest-ping addresses')

    helper_parser = subparsers.add_parser('helper', parents=[common], help='Scan with the external warpendpoint binary')
    helper_parser.add_argument('--binary', default=HELPER_BINARY, help=f'Helper path (default: ./{HELPER_BINARY})')
    helper_parser.add_argument('--arch', help='Architecture to download (amd64, 386, arm64, arm)')
    helper_parser.add_argument('--workdir', help='Directory for ip.txt/result.csv (default: temporary)')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # stdout carries the JSON result only
    setup_logging(level="DEBUG" if args.verbose else "INFO", stream=sys.stderr)
    if args.verbose:
        logger.info("Verbose logging enabled")

    try:
        if args.command == 'scan':
            result = run_scan(args)
        else:
            result = run_external_helper(args)
    except KeyboardInterrupt:
        logger.info("Scan interrupted by user")
        print(json.dumps(error_result("Scan cancelled by user")), file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.error(f"CLI {args.command} failed with exception: {str(e)}")
        result = error_result(str(e))

    print(json.dumps(result, indent=2))

    if result.get("result_type") == "error":
        sys.exit(1)


if __name__ == "__main__":
    main()
