"""Tests for the system browser user-agent."""

import socket
import threading
import time
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from osp_client.auth.browser_auth import BrowserUserAgent, CallbackResult, _CallbackHandler
from osp_client.errors import ConfigError


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _handler(path: str, server: MagicMock) -> _CallbackHandler:
    handler = _CallbackHandler.__new__(_CallbackHandler)
    handler.server = server
    handler.path = path
    handler.requestline = f"GET {path} HTTP/1.1"
    handler.client_address = ("127.0.0.1", 12345)
    handler.request_version = "HTTP/1.1"
    handler.headers = {}
    handler.send_response = Mock()
    handler.send_header = Mock()
    handler.end_headers = Mock()
    handler.wfile = MagicMock()
    return handler


def _server() -> MagicMock:
    server = MagicMock()
    server.callback_path = "/callback"
    server.callback_params = None
    server.callback_received = threading.Event()
    server.lock = threading.Lock()
    return server


class TestCallbackResult:
    """Tests for CallbackResult."""

    def test_success_result(self):
        result = CallbackResult(type="success", params={"code": "c1", "state": "s1"})

        assert result.code == "c1"
        assert result.state == "s1"
        assert result.error is None

    def test_failure_result(self):
        result = CallbackResult(type="dismiss", error="timeout")

        assert result.code is None
        assert result.error == "timeout"


class TestCallbackHandler:
    """Tests for the HTTP callback handler."""

    def test_callback_captures_params(self):
        """Test handler captures code and state."""
        server = _server()
        handler = _handler("/callback?code=auth-code-456&state=st", server)

        handler.do_GET()

        assert server.callback_params == {"code": "auth-code-456", "state": "st"}
        assert server.callback_received.is_set()
        handler.send_response.assert_called_with(200)

    def test_callback_handles_error_response(self):
        """Test handler captures an error redirect."""
        server = _server()
        handler = _handler("/callback?error=access_denied&state=st", server)

        handler.do_GET()

        assert server.callback_params["error"] == "access_denied"
        handler.send_response.assert_called_with(400)

    def test_callback_404_for_wrong_path(self):
        """Test handler returns 404 for other paths."""
        server = _server()
        handler = _handler("/favicon.ico", server)

        handler.do_GET()

        handler.send_response.assert_called_with(404)
        assert not server.callback_received.is_set()

    def test_only_first_callback_counts(self):
        """Test a second redirect does not overwrite the first."""
        server = _server()
        _handler("/callback?code=first&state=st", server).do_GET()
        _handler("/callback?code=second&state=st", server).do_GET()

        assert server.callback_params["code"] == "first"


class TestBrowserUserAgent:
    """Tests for BrowserUserAgent."""

    def test_rejects_non_loopback_redirect(self):
        """Test custom schemes cannot be served by the loopback listener."""
        with pytest.raises(ConfigError):
            BrowserUserAgent().open_auth_session("https://a/authorize", "myapp://")

    @patch("osp_client.auth.browser_auth.webbrowser.open", return_value=True)
    def test_timeout_returns_dismiss(self, mock_browser):
        """Test no redirect within the timeout is a dismiss."""
        redirect = f"http://127.0.0.1:{_free_port()}/callback"
        agent = BrowserUserAgent(timeout=0.1)

        result = agent.open_auth_session("https://a/authorize?x=1", redirect)

        mock_browser.assert_called_once_with("https://a/authorize?x=1")
        assert result.type == "dismiss"
        assert result.error == "timeout"

    @patch("osp_client.auth.browser_auth.webbrowser.open", return_value=False)
    def test_no_browser_returns_error(self, mock_browser):
        """Test failure to launch a browser is an error result."""
        redirect = f"http://127.0.0.1:{_free_port()}/callback"

        result = BrowserUserAgent(timeout=0.1).open_auth_session("https://a/authorize", redirect)

        assert result.type == "error"
        assert result.error == "browser_unavailable"

    @patch("osp_client.auth.browser_auth.webbrowser.open", return_value=True)
    def test_redirect_returns_success(self, mock_browser):
        """Test a redirect with a code is returned as success."""
        redirect = f"http://127.0.0.1:{_free_port()}/callback"
        agent = BrowserUserAgent(timeout=2)

        def simulate_redirect():
            time.sleep(0.2)
            try:
                requests.get(redirect, params={"code": "test-code", "state": "st"}, timeout=1)
            except requests.RequestException:
                pass

        threading.Thread(target=simulate_redirect, daemon=True).start()

        result = agent.open_auth_session("https://a/authorize", redirect)

        assert result.type == "success"
        assert result.code == "test-code"
        assert result.state == "st"

    @patch("osp_client.auth.browser_auth.webbrowser.open", return_value=True)
    def test_error_redirect_returns_error(self, mock_browser):
        """Test an OAuth error redirect is returned as error."""
        redirect = f"http://127.0.0.1:{_free_port()}/callback"
        agent = BrowserUserAgent(timeout=2)

        def simulate_redirect():
            time.sleep(0.2)
            try:
                requests.get(redirect, params={"error": "access_denied"}, timeout=1)
            except requests.RequestException:
                pass

        threading.Thread(target=simulate_redirect, daemon=True).start()

        result = agent.open_auth_session("https://a/authorize", redirect)

        assert result.type == "error"
        assert result.error == "access_denied"

    @patch("osp_client.auth.browser_auth.webbrowser.open", return_value=True)
    def test_cancel_returns_cancel(self, mock_browser):
        """Test cancel() unblocks the session with a cancel result."""
        redirect = f"http://127.0.0.1:{_free_port()}/callback"
        agent = BrowserUserAgent(timeout=5)
        threading.Timer(0.2, agent.cancel).start()

        result = agent.open_auth_session("https://a/authorize", redirect)

        assert result.type == "cancel"

    @patch("osp_client.auth.browser_auth.webbrowser.open", return_value=True)
    def test_open_url(self, mock_browser):
        """Test open_url passes through to the browser."""
        assert BrowserUserAgent().open_url("https://a/logout") is True
        mock_browser.assert_called_once_with("https://a/logout")
