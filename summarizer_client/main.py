from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys

from summarizer_client.api import BackendClient
from summarizer_client.auth import token_source_from_config
from summarizer_client.cli import build_parser
from summarizer_client.config import ClientConfig
from summarizer_client.deletion import ConfirmCallback
from summarizer_client.logging_config import setup_logging
from summarizer_client.status import Phase
from summarizer_client.types import SelectedDocument
from summarizer_client.workflow import WorkflowController, build_controller


def _print_status(controller: WorkflowController) -> None:
    if controller.message:
        print(controller.message, file=sys.stderr)


def _confirm_from(args: argparse.Namespace) -> ConfirmCallback:
    async def confirm(file_key: str) -> bool:
        if getattr(args, "yes", False):
            return True
        answer = await asyncio.to_thread(input, f"Delete {file_key}? [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    return confirm


async def _summarize(controller: WorkflowController, args: argparse.Namespace) -> int:
    try:
        document = SelectedDocument.from_path(args.path, args.content_type)
    except OSError as e:
        print(f"Error: cannot read {args.path}: {e}", file=sys.stderr)
        return 2

    try:
        status = await controller.run(document)
        _print_status(controller)
        if status.phase is not Phase.READY or controller.summary is None:
            return 2
        print(controller.summary.summary)
        return 0
    finally:
        await controller.aclose()


async def _history(controller: WorkflowController) -> int:
    entries = await controller.refresh_history()
    if entries is None:
        _print_status(controller)
        return 2
    if not entries:
        print("No summaries yet.")
    for e in entries:
        print(f"{e.created_at.isoformat()}  {e.file_key}  {e.preview}")
    return 0


async def _show(controller: WorkflowController, file_key: str) -> int:
    if await controller.refresh_history() is None:
        _print_status(controller)
        return 2
    record = controller.show_entry(file_key)
    if record is None:
        _print_status(controller)
        return 1
    print(record.summary)
    return 0


async def _delete(controller: WorkflowController, file_key: str) -> int:
    result = await controller.delete_entry(file_key)
    _print_status(controller)
    return 0 if result.ok else 2


async def _amain(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = ClientConfig.from_env(base_url=args.base_url)
    if args.command == "history" and args.limit and args.limit > 0:
        cfg = dataclasses.replace(cfg, history_limit=args.limit)
    cfg.validate()

    setup_logging(level=args.log_level.upper(), json=cfg.log_json)

    async with BackendClient(cfg.api_base_url, timeout=cfg.http_timeout_seconds) as backend:
        controller = build_controller(
            cfg, backend, token_source_from_config(cfg), confirm=_confirm_from(args)
        )
        if args.command == "summarize":
            return await _summarize(controller, args)
        if args.command == "history":
            return await _history(controller)
        if args.command == "show":
            return await _show(controller, args.file_key)
        if args.command == "delete":
            return await _delete(controller, args.file_key)

    parser.error(f"unknown command {args.command!r}")
    return 2


def main() -> None:
    raise SystemExit(asyncio.run(_amain()))


if __name__ == "__main__":
    main()
