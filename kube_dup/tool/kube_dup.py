"""Command line tool for duplicating kubernetes workloads."""

import argparse
import asyncio
import logging
import sys
import traceback

from kube_dup.exceptions import DupException
from .duplicate import DuplicateAction

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kube-dup",
        description="Duplicate a Pod, Deployment, StatefulSet, Job or CronJob "
        "into a new independent object, editing it before it is created.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )
    DuplicateAction.register(parser)
    return parser


def main() -> None:
    """Kube-dup command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except DupException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("kube-dup error: ", err, file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
