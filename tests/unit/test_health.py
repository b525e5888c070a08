"""Tests for health check endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from memcached_operator.health import create_combined_wsgi_app, start_metrics_server


def _environ(path: str) -> dict:
    return {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": path,
        "SCRIPT_NAME": "",
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "wsgi.url_scheme": "http",
    }


class TestCombinedWsgiApp:
    """Test cases for combined WSGI application."""

    def test_healthz(self) -> None:
        """Test /healthz returns ok."""
        start_response = MagicMock()

        result = create_combined_wsgi_app()(_environ("/healthz"), start_response)

        assert b'"status":"ok"' in b"".join(result)
        assert "200" in start_response.call_args[0][0]

    def test_readyz(self) -> None:
        """Test /readyz returns ready."""
        start_response = MagicMock()

        result = create_combined_wsgi_app()(_environ("/readyz"), start_response)

        assert b'"status":"ready"' in b"".join(result)

    def test_content_type_is_json(self) -> None:
        """Test that health responses are JSON."""
        start_response = MagicMock()

        create_combined_wsgi_app()(_environ("/healthz"), start_response)

        headers = dict(start_response.call_args[0][1])
        assert "application/json" in headers["Content-Type"]

    def test_metrics_delegated(self) -> None:
        """Test that /metrics is served by prometheus."""
        start_response = MagicMock()

        result = create_combined_wsgi_app()(_environ("/metrics"), start_response)

        assert b"memcached_operator_reconcile" in b"".join(result)


class TestStartMetricsServer:
    """Test cases for start_metrics_server."""

    @patch("memcached_operator.health.make_server")
    def test_starts_daemon_thread(self, mock_make_server: MagicMock) -> None:
        """Test that the server runs in a daemon thread."""
        thread = start_metrics_server(9999)

        assert thread.daemon
        mock_make_server.assert_called_once()
        assert mock_make_server.call_args[0][1] == 9999
        thread.join(timeout=1)
        mock_make_server.return_value.serve_forever.assert_called_once()
