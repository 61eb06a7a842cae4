from __future__ import annotations

import asyncio
import json
import sys
from argparse import ArgumentParser, Namespace
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from arbitrai_protocol import ParsedModelVerdict, VerdictOutcome, WorkflowOutput, simulate_what_if
from pydantic import TypeAdapter, ValidationError

from .bootstrap import build_workflow
from .config import WorkflowConfig
from .errors import ArbitrationError
from .observability import configure_logging

CommandHandler = Callable[[Namespace, WorkflowConfig], int]

_VOTES_ADAPTER = TypeAdapter(list[ParsedModelVerdict])


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def print_output(output: WorkflowOutput) -> None:
    """Output sink: the calldata an on-chain writer needs, on stdout."""
    _print_json(output.model_dump(by_alias=True, mode="json"))


def run_resolve(args: Namespace, config: WorkflowConfig) -> int:
    workflow = build_workflow(config, sink=print_output)
    asyncio.run(workflow.resolve(args.dispute_id))
    return 0


def run_resolve_pending(args: Namespace, config: WorkflowConfig) -> int:
    workflow = build_workflow(config, sink=print_output)
    report = asyncio.run(workflow.resolve_pending(args.dispute_ids))
    _print_json(
        {
            "processed": [r.output.dispute_id for r in report.processed],
            "failed": report.failed,
            "deferred": report.deferred,
            "skipped": report.skipped,
        }
    )
    return 1 if report.failed else 0


def run_what_if(args: Namespace, _: WorkflowConfig) -> int:
    try:
        votes = _VOTES_ADAPTER.validate_json(Path(args.votes_file).read_bytes())
        result = simulate_what_if(votes, args.model_index, VerdictOutcome(args.vote))
    except (OSError, ValidationError, IndexError, ValueError) as exc:
        print(f"what-if failed: {exc}", file=sys.stderr)
        return 1
    _print_json(result.model_dump(by_alias=True, mode="json"))
    return 0


def run_serve(args: Namespace, _: WorkflowConfig) -> int:
    import uvicorn

    uvicorn.run("arbiter_workflow.server:app", host=args.host, port=args.port, reload=False)
    return 0


COMMAND_HANDLERS: dict[str, CommandHandler] = {
    "resolve": run_resolve,
    "resolve-pending": run_resolve_pending,
    "what-if": run_what_if,
    "serve": run_serve,
}


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="arbiter", description="ArbitrAI off-chain arbiter")
    parser.add_argument("--env-file", default=None, help="dotenv file seeding the environment")

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve", help="arbitrate one dispute")
    resolve.add_argument("dispute_id")

    pending = subparsers.add_parser("resolve-pending", help="arbitrate a list of disputes")
    pending.add_argument("dispute_ids", nargs="+")

    what_if = subparsers.add_parser("what-if", help="recompute consensus with one vote swapped")
    what_if.add_argument("--votes-file", required=True)
    what_if.add_argument("--model-index", required=True, type=int)
    what_if.add_argument("--vote", required=True, choices=[outcome.value for outcome in VerdictOutcome])

    serve = subparsers.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=4010)

    return parser


def entrypoint(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    config = WorkflowConfig.from_env(dotenv_path=args.env_file)
    configure_logging(config.log_level)

    handler = COMMAND_HANDLERS[str(args.command)]
    try:
        return handler(args, config)
    except ArbitrationError as exc:
        print(json.dumps(exc.to_dict(), sort_keys=True), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(entrypoint())
