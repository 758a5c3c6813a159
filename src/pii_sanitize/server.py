"""HTTP server for pii-sanitize.

Endpoints:
    POST /api/sanitize    — Detect + mask:  {"text", "policy", "language"}
    POST /api/mask        — Mask caller-supplied entities:
                            {"text", "policy", "entities", "offsetUnit"}
    GET  /health          — Health check

Successful responses: {"anonymized": ..., "spans": [...], "entities": [...]}.
Errors: {"error": ..., "details"?: ...} with 400 (bad request), 502
(detection service failed) or 500.
"""

from __future__ import annotations
import json
import logging
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .config import create_sanitizer, load_config, load_from_yaml
from .errors import InvalidInput, SanitizeError
from .sanitizer import Sanitizer

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("PII_SANITIZE_PORT", "7071"))
DEFAULT_CONFIG = os.environ.get("PII_SANITIZE_CONFIG", "")
MAX_BODY_BYTES = 1 << 20

# Shared state
_sanitizer: Sanitizer | None = None
_masker: Sanitizer | None = None      # no entity source; for /api/mask
_config_path: str = DEFAULT_CONFIG


def _load_config() -> dict[str, Any]:
    return load_from_yaml(_config_path) if _config_path else load_config({})


def _get_sanitizer() -> Sanitizer:
    """Build the sanitizer on first use; a config error is retried per request."""
    global _sanitizer
    if _sanitizer is None:
        _sanitizer = create_sanitizer(_load_config())
    return _sanitizer


def _get_masker() -> Sanitizer:
    global _masker
    if _masker is None:
        _masker = _sanitizer or create_sanitizer(_load_config(), with_source=False)
    return _masker


class SanitizeHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the sanitize service."""

    def _read_json(self) -> dict[str, Any]:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError as e:
            raise InvalidInput("Bad Content-Length header.") from e
        if length < 0:
            raise InvalidInput("Bad Content-Length header.")
        if length > MAX_BODY_BYTES:
            raise InvalidInput("Request body too large.")
        try:
            body = self.rfile.read(length).decode("utf-8")
            data = json.loads(body) if body else {}
        except ValueError as e:
            raise InvalidInput("Request body is not valid JSON.") from e
        if not isinstance(data, dict):
            raise InvalidInput("Request body must be a JSON object.")
        return data

    def _respond(self, status: int, data: Any) -> None:
        # ASCII escapes keep lone surrogates from the request valid in the body
        body = json.dumps(data).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - " + format, self.address_string(), *args)

    def do_GET(self) -> None:
        if self.path == "/health":
            self._respond(200, {"status": "ok"})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            if self.path == "/api/sanitize":
                body = self._read_json()
                result = _get_sanitizer().sanitize(
                    body.get("text"),
                    policy=body.get("policy"),
                    language=body.get("language"),
                )
                self._respond(200, result.to_dict())

            elif self.path == "/api/mask":
                body = self._read_json()
                result = _get_masker().mask_entities(
                    body.get("text"),
                    body.get("entities"),
                    policy=body.get("policy"),
                    unit=body.get("offsetUnit"),
                )
                self._respond(200, result.to_dict())

            else:
                self._respond(404, {"error": "not found"})

        except SanitizeError as e:
            if e.status >= 500:
                logger.error(f"{self.path}: {type(e).__name__}: {e.message}")
            else:
                logger.info(f"{self.path}: rejected ({type(e).__name__}): {e.message}")
            self._respond(e.status, e.to_dict())
        except Exception:
            logger.exception(f"{self.path}: server error")
            self._respond(500, {"error": "Server error"})


def make_server(
    host: str = "127.0.0.1",
    port: int = DEFAULT_PORT,
    *,
    config_path: str = DEFAULT_CONFIG,
    sanitizer: Sanitizer | None = None,
) -> ThreadingHTTPServer:
    """Create (but don't start) the HTTP server."""
    global _config_path, _sanitizer, _masker
    _config_path = config_path
    _sanitizer = sanitizer
    _masker = None
    return ThreadingHTTPServer((host, port), SanitizeHandler)


def serve(
    host: str = "127.0.0.1",
    port: int = DEFAULT_PORT,
    config_path: str = DEFAULT_CONFIG,
) -> None:
    """Start the pii-sanitize HTTP server."""
    server = make_server(host, port, config_path=config_path)
    logger.info(f"pii-sanitize listening on http://{host}:{server.server_port}")
    logger.info(f"  config: {config_path or '(environment)'}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        server.server_close()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="pii-sanitize HTTP server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="YAML config path")
    parser.add_argument("--log-level", default=os.environ.get("PII_SANITIZE_LOG_LEVEL", "INFO"))
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    serve(host=args.host, port=args.port, config_path=args.config)
