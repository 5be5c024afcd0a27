# common.py
import argparse
import logging
from typing import Callable

from tabledump.dump_errors import DumpError
from tabledump.store_config import DEFAULT_MAX_ATTEMPTS, DEFAULT_TIMEOUT, StoreConfig, get_available_aws_profiles


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for noisy in ("boto3", "botocore", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def add_connection_args(ap: argparse.ArgumentParser) -> None:
    available_profiles = get_available_aws_profiles()
    ap.add_argument(
        "--profile",
        choices=available_profiles,
        help=f"AWS profile name (Available: {', '.join(available_profiles)})",
    )
    ap.add_argument("--region", help="AWS region name (default: us-east-1)")
    ap.add_argument("--endpoint-url", help="Custom endpoint, e.g. http://localhost:8000 for DynamoDB Local")
    consistency = ap.add_mutually_exclusive_group()
    consistency.add_argument(
        "--consistent-read",
        dest="consistent_read",
        action="store_const",
        const=True,
        default=None,
        help="Use strongly consistent reads (the default)",
    )
    consistency.add_argument(
        "--eventual",
        dest="consistent_read",
        action="store_const",
        const=False,
        default=None,
        help="Use eventually consistent reads",
    )
    ap.add_argument("--timeout", type=float, help=f"Connect/read timeout in seconds (default: {DEFAULT_TIMEOUT})")
    ap.add_argument(
        "--max-attempts",
        type=int,
        help=f"Attempts per request including retries (default: {DEFAULT_MAX_ATTEMPTS})",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def config_from_args(args: argparse.Namespace) -> StoreConfig:
    return StoreConfig.from_env(
        profile=args.profile,
        region=args.region,
        endpoint_url=args.endpoint_url,
        consistent_read=args.consistent_read,
        timeout=args.timeout,
        max_attempts=args.max_attempts,
    )


def run_command(fn: Callable[[], None]) -> int:
    """Run a command body, mapping DumpError and file errors to exit status 1."""
    log = logging.getLogger("tabledump")
    try:
        fn()
    except DumpError as e:
        log.error(f"{e.kind}: {e}")
        return 1
    except OSError as e:
        log.error(f"file error: {e}")
        return 1
    return 0
