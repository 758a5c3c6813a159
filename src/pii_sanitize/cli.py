"""CLI interface for pii-sanitize.

Usage:
    # Detect + mask (stdin: plain text, stdout: JSON result)
    echo 'Call 0601020304 now' | pii-sanitize sanitize --policy pseudo

    # Mask known entities (stdin: {"text": ..., "entities": [...]})
    echo '{"text": "Call 0601020304 now",
           "entities": [{"category": "PhoneNumber", "offset": 5, "length": 10}]}' | \
        pii-sanitize mask --policy redact

    # Run the HTTP server
    pii-sanitize --config pii.yaml serve --port 7071

Errors are written to stderr as JSON and the exit code is non-zero.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys

from .config import create_sanitizer, load_config, load_from_yaml
from .errors import InvalidInput, SanitizeError
from .sanitizer import Sanitizer


def _load(args: argparse.Namespace) -> dict:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.source:
        cfg["source"] = args.source
    return cfg


def _build_sanitizer(args: argparse.Namespace) -> Sanitizer:
    return create_sanitizer(_load(args))


def _emit(data: dict) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_sanitize(args: argparse.Namespace) -> None:
    """Detect and mask PII in plain text on stdin."""
    sanitizer = _build_sanitizer(args)
    text = sys.stdin.read()
    result = sanitizer.sanitize(text, policy=args.policy, language=args.language)
    _emit(result.to_dict())


def cmd_mask(args: argparse.Namespace) -> None:
    """Mask caller-supplied entities; no detection service is called."""
    try:
        body = json.loads(sys.stdin.read())
    except ValueError as e:
        raise InvalidInput("stdin is not valid JSON") from e
    if not isinstance(body, dict):
        raise InvalidInput("stdin must be a JSON object with 'text' and 'entities'")

    # Filters from the config still apply; no entity source is built.
    sanitizer = create_sanitizer(_load(args), with_source=False)
    result = sanitizer.mask_entities(
        body.get("text"),
        body.get("entities", []),
        policy=args.policy,
        unit=args.offset_unit or body.get("offsetUnit"),
    )
    _emit(result.to_dict())


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the HTTP server."""
    from .server import serve
    serve(host=args.host, port=args.port, config_path=args.config or "")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pii-sanitize",
        description="Mask PII entities in text and report output spans",
    )
    parser.add_argument("--config", default=os.environ.get("PII_SANITIZE_CONFIG", ""),
                        help="YAML config path")
    parser.add_argument("--source", choices=["azure", "presidio"], help="Entity source override")
    parser.add_argument("--log-level", default=os.environ.get("PII_SANITIZE_LOG_LEVEL", "WARNING"))

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("sanitize", help="Detect + mask plain text (stdin)")
    p.add_argument("--policy", default=None, help="redact | pseudo | hash")
    p.add_argument("--language", default=None, help="'auto' or a language code")

    p = sub.add_parser("mask", help="Mask known entities (JSON stdin)")
    p.add_argument("--policy", default=None, help="redact | pseudo | hash")
    p.add_argument("--offset-unit", default=None, choices=["utf16", "codepoint"])

    p = sub.add_parser("serve", help="Run the HTTP server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=int(os.environ.get("PII_SANITIZE_PORT", "7071")))

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "sanitize": cmd_sanitize,
        "mask": cmd_mask,
        "serve": cmd_serve,
    }
    try:
        cmds[args.command](args)
    except SanitizeError as e:
        json.dump(e.to_dict(), sys.stderr, ensure_ascii=False)
        sys.stderr.write("\n")
        return 2 if e.status < 500 else 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
