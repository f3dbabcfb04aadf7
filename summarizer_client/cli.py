from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="summarizer",
        description="Upload documents for summarization and manage past summaries",
    )
    p.add_argument(
        "--base-url",
        default=None,
        help="Backend API base URL (default from env SUMMARIZER_API_BASE_URL)",
    )
    p.add_argument("--log-level", default="WARNING", help="Python logging level (INFO, DEBUG, ...)")

    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("summarize", help="Upload a file and print its summary")
    s.add_argument("path", help="Local file to upload")
    s.add_argument("--content-type", default=None, help="Override the guessed MIME type")

    h = sub.add_parser("history", help="List past summaries, most recent first")
    h.add_argument("--limit", type=int, default=0, help="Override SUMMARIZER_HISTORY_LIMIT")

    show = sub.add_parser("show", help="Print the summary of one history entry")
    show.add_argument("file_key")

    d = sub.add_parser("delete", help="Delete a summary record")
    d.add_argument("file_key")
    d.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    return p
