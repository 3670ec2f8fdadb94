"""Minimal JSON-over-HTTP binding for the Veridis core."""

import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel

from .core import VeridisCore
from .errors import AuthzError, Forbidden, PersistenceFailure, VeridisError
from .state import DEFAULT_QUERY_LIMIT

logger = logging.getLogger(__name__)


def _to_json(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [_to_json(item) for item in value]
    return value


def _query_int(query: dict[str, list[str]], name: str, default: int) -> int:
    values = query.get(name)
    if not values:
        return default
    try:
        return int(values[0])
    except ValueError:
        return default


def _query_bool(query: dict[str, list[str]], name: str) -> bool:
    values = query.get(name)
    return bool(values) and values[0].strip().lower() in {"1", "true", "yes", "on"}


def _optional_str(body: dict, key: str) -> Optional[str]:
    value = body.get(key)
    return value if isinstance(value, str) else None


def _required_str(body: dict, key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} is required")
    return value


def _optional_float(body: dict, key: str) -> Optional[float]:
    value = body.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def error_status(error: Exception) -> int:
    """HTTP status for a core failure."""
    if isinstance(error, Forbidden):
        return 403
    if isinstance(error, (AuthzError, ValueError)):
        return 400
    return 500


class VeridisRequestHandler(BaseHTTPRequestHandler):
    """Routes requests to a VeridisCore bound on the handler class."""

    core: VeridisCore
    server_version = "VeridisCore/0.1"

    def do_OPTIONS(self):
        self.send_response(204)
        self._send_cors_headers()
        self.end_headers()

    def do_GET(self):
        url = urlsplit(self.path)
        query = parse_qs(url.query)

        if url.path == "/health":
            self._send_json(200, self.core.health())
        elif url.path == "/state":
            self._send_json(200, self.core.get_state())
        elif url.path == "/events":
            self._send_json(200, self.core.get_events(_query_int(query, "limit", DEFAULT_QUERY_LIMIT)))
        elif url.path == "/alerts":
            self._send_json(200, self.core.get_alerts(_query_int(query, "limit", DEFAULT_QUERY_LIMIT)))
        elif url.path == "/assistant":
            self._send_json(200, self.core.assistant(verbose=_query_bool(query, "verbose")))
        else:
            self._send_json(404, {"ok": False, "error": "not_found"})

    def do_POST(self):
        path = urlsplit(self.path).path
        body = self._read_json_body()

        if path == "/events":
            # Malformed bodies are normalized like any other bad payload.
            self._send_json(201, self.core.ingest_event(body))
            return

        if not isinstance(body, dict):
            body = {}

        try:
            if path == "/authz/onboard":
                result = self.core.onboard_user(
                    _required_str(body, "externalId"),
                    name=_optional_str(body, "name"),
                    origin=_optional_str(body, "origin"),
                )
                self._send_json(200, {"ok": True, "user": _to_json(result)})
            elif path == "/authz/invites":
                result = self.core.create_invite(
                    _required_str(body, "creatorExternalId"),
                    ttl_hours=_optional_float(body, "ttlHours"),
                )
                self._send_json(201, {"ok": True, "invite": _to_json(result)})
            elif path == "/authz/redeem":
                result = self.core.redeem_invite(_required_str(body, "externalId"), _required_str(body, "code"))
                self._send_json(200, {"ok": True, "user": _to_json(result)})
            elif path == "/authz/check":
                result = self.core.check_permission(_required_str(body, "externalId"), _required_str(body, "action"))
                self._send_json(200, {"ok": True, **_to_json(result)})
            else:
                self._send_json(404, {"ok": False, "error": "not_found"})
        except (VeridisError, ValueError) as e:
            if isinstance(e, PersistenceFailure):
                logger.error(f"{path}: {e}")
            code = e.code if isinstance(e, VeridisError) else "invalid_request"
            self._send_json(error_status(e), {"ok": False, "error": code, "message": str(e)})

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)

    def _read_json_body(self) -> Any:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            return None
        if length <= 0:
            return None
        raw = self.rfile.read(length)
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None

    def _send_cors_headers(self) -> None:
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")

    def _send_json(self, status: int, value: Any) -> None:
        data = json.dumps(_to_json(value)).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self._send_cors_headers()
        self.end_headers()
        self.wfile.write(data)


def make_server(core: VeridisCore, host: str, port: int) -> ThreadingHTTPServer:
    """Build an HTTP server bound to ``core``. Port 0 picks a free port."""
    handler = type("BoundVeridisRequestHandler", (VeridisRequestHandler,), {"core": core})
    return ThreadingHTTPServer((host, port), handler)


def serve(core: VeridisCore, host: str, port: int) -> None:
    server = make_server(core, host, port)
    logger.info(f"Veridis Core running on http://{host}:{server.server_address[1]}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
