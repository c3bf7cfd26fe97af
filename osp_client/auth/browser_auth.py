"""System browser user-agent for the authorization flow.

Opens the user's browser at the authorize URL. A local HTTP server bound
to the loopback redirect URI receives the redirect and hands its query
parameters back as a ``CallbackResult``. State checking and the code
exchange happen in the exchange engine, not here.
"""

import logging
import threading
import webbrowser
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlparse

from ..errors import ConfigError

__all__ = ["BrowserUserAgent", "CallbackResult"]

logger = logging.getLogger(__name__)

RESULT_SUCCESS = "success"
RESULT_ERROR = "error"
RESULT_CANCEL = "cancel"
RESULT_DISMISS = "dismiss"


@dataclass
class CallbackResult:
    """Outcome of an authorization session.

    ``type`` is one of "success", "error", "cancel" or "dismiss".
    """

    type: str
    params: dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def code(self) -> Optional[str]:
        return self.params.get("code")

    @property
    def state(self) -> Optional[str]:
        return self.params.get("state")


_PAGE_HTML = """\
<!DOCTYPE html>
<html>
<head>
    <title>OSP Client - {title}</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, sans-serif; display: flex; justify-content: center; align-items: center; min-height: 100vh; margin: 0; background: #f8f9fa; }}
        .card {{ background: white; border-radius: 8px; padding: 40px; text-align: center; box-shadow: 0 4px 12px rgba(0,0,0,.1); max-width: 400px; }}
        h1 {{ font-size: 22px; color: #333; margin: 0 0 8px; }}
        p {{ color: #777; margin: 0; }}
    </style>
</head>
<body>
    <div class="card">
        <h1>{title}</h1>
        <p>{message}</p>
    </div>
</body>
</html>
"""

_SUCCESS_HTML = _PAGE_HTML.format(
    title="Authorization Successful",
    message="You can close this tab and return to OSP Client.",
)
_ERROR_HTML = _PAGE_HTML.format(
    title="Authorization Failed",
    message="Something went wrong. Please try again from the app.",
)


class _CallbackHandler(BaseHTTPRequestHandler):
    """HTTP handler that captures the authorization redirect."""

    def do_GET(self):  # noqa: N802 - required by BaseHTTPRequestHandler
        parsed = urlparse(self.path)

        if parsed.path != self.server.callback_path:
            self.send_response(404)
            self.end_headers()
            return

        with self.server.lock:
            # Only the first redirect counts
            if self.server.callback_received.is_set():
                self._reply(200, _SUCCESS_HTML)
                return

            params = {k: v[0] for k, v in parse_qs(parsed.query).items() if v}
            self.server.callback_params = params
            if params.get("code"):
                self._reply(200, _SUCCESS_HTML)
            else:
                self._reply(400, _ERROR_HTML)
            self.server.callback_received.set()

    def _reply(self, status: int, html: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/html")
        self.end_headers()
        self.wfile.write(html.encode())

    def log_message(self, format, *args):
        """Route HTTP server logs to debug."""
        logger.debug(f"Callback server: {format % args}")


class BrowserUserAgent:
    """Runs authorization sessions in the system browser.

    Flow:
    1. Bind a local HTTP server to the host/port/path of the redirect URI
    2. Open the browser at the authorize URL
    3. Wait for the redirect (or timeout / cancel)
    4. Return the redirect's query parameters
    """

    TIMEOUT_SECONDS = 300  # 5 minutes

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else self.TIMEOUT_SECONDS
        self._server: Optional[HTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._cancelled = False

    def cancel(self) -> None:
        """Cancel a running session, unblocking open_auth_session() immediately."""
        self._cancelled = True
        if self._server is not None:
            self._server.callback_received.set()

    def open_url(self, url: str) -> bool:
        """Open a URL (e.g. the logout page). Returns False if no browser opened."""
        try:
            return bool(webbrowser.open(url))
        except webbrowser.Error as e:
            logger.warning(f"Failed to open browser: {e}")
            return False

    def open_auth_session(self, url: str, redirect_uri: str) -> CallbackResult:
        """Open the authorize URL and wait for the redirect.

        Raises:
            ConfigError: If redirect_uri is not a loopback http URI
        """
        parsed = urlparse(redirect_uri)
        if parsed.scheme != "http" or parsed.hostname not in ("127.0.0.1", "localhost"):
            raise ConfigError(
                f"Browser user-agent needs a loopback http redirect URI, got {redirect_uri}"
            )

        self._cancelled = False
        try:
            self._server = HTTPServer(
                (parsed.hostname, parsed.port or 80), _CallbackHandler
            )
        except OSError as e:
            logger.error(f"Cannot listen on {redirect_uri}: {e}")
            return CallbackResult(type=RESULT_ERROR, error="callback_unavailable")

        self._server.lock = threading.Lock()
        self._server.callback_path = parsed.path or "/"
        self._server.callback_params = None
        self._server.callback_received = threading.Event()

        logger.info(f"Callback server listening on port {self._server.server_address[1]}")
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

        try:
            logger.info("Opening browser for authorization")
            if not self.open_url(url):
                return CallbackResult(type=RESULT_ERROR, error="browser_unavailable")

            got_response = self._server.callback_received.wait(timeout=self.timeout)

            if self._cancelled:
                logger.info("Authorization cancelled")
                return CallbackResult(type=RESULT_CANCEL)

            if not got_response:
                logger.warning("Authorization timed out (no callback received)")
                return CallbackResult(type=RESULT_DISMISS, error="timeout")

            params = self._server.callback_params or {}
            if params.get("code"):
                logger.info("Authorization code received")
                return CallbackResult(type=RESULT_SUCCESS, params=params)

            error = params.get("error", "unknown")
            logger.warning(f"Authorization failed: {error}")
            return CallbackResult(type=RESULT_ERROR, params=params, error=error)
        finally:
            self._server.shutdown()
            self._server.server_close()
            if self._thread is not None:
                self._thread.join(timeout=2.0)
            self._server = None
