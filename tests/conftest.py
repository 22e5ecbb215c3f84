"""Pytest configuration and fixtures."""

import http.server
import socketserver
import threading

import pytest

from tests.layer_helper import write_layer


@pytest.fixture
def layer_server(tmp_path):
    """
    Fixture for creating a local map service for testing.

    Serves ``<layer>/query`` documents from a temporary directory; the query
    string is ignored, so a request for
    ``<base_url>/3/query?where=1=1&f=json&outFields=*`` returns
    ``fixtures_dir/3/query``. Missing layers answer 404.

    Usage:
        def test_fetch(layer_server):
            layer_server.add_layer(1, fields=[...], features=[...])
            catalog = Catalog(language="en", base_url=layer_server.base_url, ...)

    Attributes:
        port (int): The port the server is listening on
        fixtures_dir (Path): Directory holding ``<layer>/query`` documents
        base_url (str): MapServer-style base URL for this server
    """

    class LayerServer:
        def __init__(self, port, fixtures_dir, server, thread):
            self.port = port
            self.fixtures_dir = fixtures_dir
            self._server = server
            self._thread = thread

        @property
        def base_url(self):
            """Get the map service base URL for this server."""
            return f"http://127.0.0.1:{self.port}/MapServer"

        def add_layer(self, layer_id, fields, features):
            """Publish a layer document at ``<base_url>/<layer_id>/query``."""
            return write_layer(self.fixtures_dir / "MapServer" / str(layer_id) / "query", fields, features)

        def add_raw(self, layer_id, body: bytes):
            """Publish a raw response body."""
            path = self.fixtures_dir / "MapServer" / str(layer_id) / "query"
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(body)
            return path

    fixtures_dir = tmp_path / "layer_fixtures"
    fixtures_dir.mkdir()

    class LayerHTTPRequestHandler(http.server.SimpleHTTPRequestHandler):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, directory=str(fixtures_dir), **kwargs)

        def log_message(self, format, *args):
            pass  # Suppress logging during tests

    # Start server on auto-assigned port
    server = socketserver.TCPServer(("127.0.0.1", 0), LayerHTTPRequestHandler)
    port = server.server_address[1]

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield LayerServer(port, fixtures_dir, server, thread)

    server.shutdown()
    server.server_close()
    thread.join(timeout=1.0)
