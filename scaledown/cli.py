"""Command-line entry point: parallel-scaledown --file targets.yaml"""

import argparse
import asyncio
import signal
import sys
from concurrent.futures import ThreadPoolExecutor

from scaledown.config import ScaleDownSettings, load_targets
from scaledown.exceptions import ConfigurationError
from scaledown.orchestrator import run_scale_down
from scaledown.scaler_logger import ScalerLogger, configure_logging
from scaledown.session import KubeSession
from scaledown.targets import AggregateResult


logger = ScalerLogger(__name__).logger

RULE = "---------------------------------------------------"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parallel-scaledown",
        description="Scale down deployments and statefulsets in parallel",
    )
    parser.add_argument(
        "--file",
        required=True,
        help="Path to the input yaml file containing list of deployments and statefulsets",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Abort the whole run after this many seconds")
    parser.add_argument("--poll-interval", type=float, default=2.0, help="Seconds between convergence checks")
    parser.add_argument("--max-attempts", type=int, default=5, help="Update attempts per resource on conflicts")
    parser.add_argument("--watch-timeout", type=float, default=None, help="Give up waiting on one resource after this many seconds")
    parser.add_argument("--request-timeout", type=float, default=30.0, help="Timeout for each API request")
    parser.add_argument(
        "--verify-when-at-target",
        action="store_true",
        help="Still wait for observed replicas when the desired count is already at target",
    )
    parser.add_argument("--kubeconfig", default=None)
    parser.add_argument("--context", default=None)
    parser.add_argument("--in-cluster", action="store_true", help="Use the pod's service account")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-file", default=None)
    return parser


def settings_from_args(args: argparse.Namespace) -> ScaleDownSettings:
    return ScaleDownSettings(
        poll_interval=args.poll_interval,
        max_attempts=args.max_attempts,
        timeout=args.timeout,
        watch_timeout=args.watch_timeout,
        request_timeout=args.request_timeout,
        verify_when_at_target=args.verify_when_at_target,
    )


def print_report(result: AggregateResult) -> None:
    print()
    print(RULE)
    if result.success:
        print("All deployments and statefulsets are scaled down to target.")
        print("Ready to start the maintenance.")
    else:
        print("The following resources failed to scale down:")
        for line in result.summary_lines():
            print(line)
    print(RULE)
    if not result.success:
        print(f"finished with {len(result.failures)} errors")


async def _run(session, targets, settings) -> AggregateResult:
    """Scale every target and print the report before returning.

    Client calls run on a pool owned by this run. It is shut down without
    waiting, so a request stuck past the deadline or a signal does not hold
    back the report.
    """
    cancel_event = asyncio.Event()
    executor = ThreadPoolExecutor(thread_name_prefix="scaledown")
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, cancel_event.set)
    try:
        result = await run_scale_down(session, targets, settings, cancel_event, executor=executor)
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
        executor.shutdown(wait=False, cancel_futures=True)
    print_report(result)
    return result


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        settings = settings_from_args(args)
        targets = load_targets(args.file)
        session = KubeSession.from_kubeconfig(
            kubeconfig=args.kubeconfig,
            context=args.context,
            in_cluster=args.in_cluster,
            request_timeout=settings.request_timeout,
        )
    except ConfigurationError as e:
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1

    print("Starting parallel scale down...")
    result = asyncio.run(_run(session, targets, settings))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
