"""
HTTP remote control.

Endpoints
---------
/action?cmd=<token>  → inject a command token (next, previous, toggleAutoplay, ...)
/status              → JSON snapshot of what is on screen

The server runs on its own daemon thread. Commands are queued onto the Qt
thread before ``command_received`` fires, so the engine only sees them there.
"""
from __future__ import annotations

import http.server
import json
import logging
import socketserver
import threading
import urllib.parse
from typing import Any, Optional

from PySide6.QtCore import QObject, Qt, Signal

from tvslide.models.settings import Command

logger = logging.getLogger(__name__)


class ReusableTCPServer(socketserver.ThreadingMixIn, http.server.HTTPServer):
    daemon_threads = True
    allow_reuse_address = True


class RemoteHandler(http.server.BaseHTTPRequestHandler):
    def log_message(self, *args):
        return  # requests are logged by the remote itself

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path == "/action":
            return self._serve_action(parsed.query)
        if parsed.path == "/status":
            return self._serve_json(self.server.remote.status_snapshot())  # type: ignore[attr-defined]
        self.send_error(404, "Not found")

    def _serve_json(self, obj: Any):
        b = json.dumps(obj).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(b)))
        self.end_headers()
        self.wfile.write(b)

    def _serve_action(self, query: str):
        qs = urllib.parse.parse_qs(query)
        cmd = qs.get("cmd", [""])[0]
        if cmd not in Command.ALL:
            return self.send_error(400, "Unknown cmd")
        self.server.remote.post_command(cmd)  # type: ignore[attr-defined]
        self.send_response(204)
        self.end_headers()


class RemoteServer(QObject):
    command_received = Signal(str)
    _posted = Signal(str)

    def __init__(self, port: int = 8080, host: str = "", parent: Optional[QObject] = None):
        super().__init__(parent)
        self.host = host
        self.port = port
        self._httpd: Optional[ReusableTCPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._status: dict = {}
        self._lock = threading.Lock()
        self._posted.connect(self._relay, Qt.QueuedConnection)

    @property
    def address(self) -> tuple:
        if self._httpd is None:
            return (self.host, self.port)
        return self._httpd.server_address

    def post_command(self, token: str):
        # called on the server thread
        self._posted.emit(token)

    def _relay(self, token: str):
        logger.info(f"[remote] {token}")
        self.command_received.emit(token)

    def publish_status(self, status: dict):
        with self._lock:
            self._status = dict(status)

    def status_snapshot(self) -> dict:
        with self._lock:
            return dict(self._status)

    def follow_engine(self, engine, dispatcher):
        """Republish the engine status after anything that can change it."""

        def publish(*_):
            self.publish_status(engine.status())

        engine.slideshow.transition_finished.connect(publish)
        engine.slideshow.transition_aborted.connect(publish)
        dispatcher.dispatched.connect(publish)
        if engine.playlist is not None:
            engine.playlist.track_changed.connect(publish)
        publish()

    def start(self):
        if self._httpd is not None:
            return
        self._httpd = ReusableTCPServer((self.host, self.port), RemoteHandler)
        self._httpd.remote = self
        self._thread = threading.Thread(target=self._httpd.serve_forever, name="tvslide-remote", daemon=True)
        self._thread.start()
        logger.info(f"[remote] listening on port {self.address[1]}")

    def stop(self):
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        self._httpd = None
        if self._thread is not None:
            self._thread.join(timeout=2)
            self._thread = None
