from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable, Sequence

from .assemble import build_responses
from .config import config_sha256, load_config
from .config_schema import AppConfig
from .errors import ConfigError, FetchError, SchemaError
from .http_client import ThreadSourceClient
from .reader import ThreadSource, fetch_thread_content, fetch_threads
from .run_log import RunLogger


def _add_common_args(parser: argparse.ArgumentParser, *, network: bool) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (defaults are used when omitted).",
    )
    parser.add_argument(
        "--log",
        default=None,
        help="Append JSON-lines events to this file instead of stderr.",
    )
    if network:
        parser.add_argument(
            "--offline",
            action="store_true",
            help="Serve a small built-in board instead of making network calls.",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="datview")

    subparsers = parser.add_subparsers(dest="command", required=True)

    threads = subparsers.add_parser("threads", help="Print the board's thread list as JSON.")
    _add_common_args(threads, network=True)
    threads.set_defaults(_handler=_cmd_threads)

    thread = subparsers.add_parser(
        "thread",
        help="Print one thread's responses with ID counts as JSON.",
    )
    thread.add_argument("thread_id", help="Thread identifier (at least 4 characters).")
    _add_common_args(thread, network=True)
    thread.set_defaults(_handler=_cmd_thread)

    parse = subparsers.add_parser("parse", help="Parse a local dat file and print JSON.")
    parse.add_argument("path", help="Path to a dat file.")
    parse.add_argument(
        "--encoding",
        default="utf-8",
        help="Text encoding of the dat file (default: utf-8).",
    )
    _add_common_args(parse, network=False)
    parse.set_defaults(_handler=_cmd_parse)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


def _open_logger(args: argparse.Namespace) -> RunLogger:
    if args.log:
        return RunLogger.open(args.log)
    return RunLogger.to_stream(sys.stderr)


def _make_source(args: argparse.Namespace, cfg: AppConfig) -> ThreadSource:
    if bool(getattr(args, "offline", False)):
        from .offline import OfflineThreadSource

        return OfflineThreadSource()
    return ThreadSourceClient(cfg.source)


def _close_source(source: ThreadSource) -> None:
    if isinstance(source, ThreadSourceClient):
        source.close()


def _run_with_log(
    args: argparse.Namespace, body: Callable[[AppConfig, RunLogger], int]
) -> int:
    with _open_logger(args) as log:
        log.info("command_started", command=args.command, config_path=args.config)
        try:
            cfg = load_config(args.config)
            log.info("config_loaded", config_sha256=config_sha256(cfg))
            return int(body(cfg, log))
        except Exception as e:
            log.exception("command_failed", exc=e, command=args.command)
            raise


def _cmd_threads(args: argparse.Namespace) -> int:
    def _body(cfg: AppConfig, log: RunLogger) -> int:
        source = _make_source(args, cfg)
        try:
            threads = fetch_threads(cfg, source=source, logger=log)
        finally:
            _close_source(source)
        _print_json([t.to_dict() for t in threads])
        return 0

    return _run_with_log(args, _body)


def _cmd_thread(args: argparse.Namespace) -> int:
    def _body(cfg: AppConfig, log: RunLogger) -> int:
        source = _make_source(args, cfg)
        try:
            records = fetch_thread_content(args.thread_id, cfg, source=source, logger=log)
        finally:
            _close_source(source)
        _print_json([r.to_dict() for r in records])
        return 0

    return _run_with_log(args, _body)


def _cmd_parse(args: argparse.Namespace) -> int:
    def _body(cfg: AppConfig, log: RunLogger) -> int:
        path = Path(args.path)
        try:
            text = path.read_text(encoding=args.encoding, errors="replace")
        except OSError as e:
            raise FetchError(f"Failed to read dat file: {path}: {e}") from e

        result = build_responses(text, parsing=cfg.parsing)
        for diag in result.diagnostics:
            log.warning(
                "dat_line_skipped",
                path=str(path),
                line_no=diag.line_no,
                reason=diag.reason,
                excerpt=diag.excerpt,
            )
        _print_json([r.to_dict() for r in result.records])
        return 0

    return _run_with_log(args, _body)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except (FetchError, SchemaError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
