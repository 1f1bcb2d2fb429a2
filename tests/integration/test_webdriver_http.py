"""
Integration tests for WebDriverClient against a real local HTTP server.

Verifies the wire format (methods, paths, JSON bodies, headers) and error
translation for responses urllib produces from actual sockets.
"""

import socket
import threading

import pytest

from safari_cli.exceptions import HTTPStatusError, ProtocolError, WebDriverConnectionError
from safari_cli.webdriver import ELEMENT_KEY, WebDriverClient


@pytest.fixture
def client(fake_driver):
    return WebDriverClient(fake_driver.port, host="127.0.0.1", timeout=5.0)


@pytest.mark.integration
class TestWireFormat:
    def test_status(self, fake_driver, client):
        fake_driver.route("GET", "/status", (200, {"value": {"ready": True, "message": ""}}))
        assert client.get_status() == {"ready": True, "message": ""}

    def test_create_session_posts_capabilities(self, fake_driver, client):
        fake_driver.route(
            "POST", "/session", (200, {"value": {"sessionId": "abc123", "capabilities": {}}})
        )

        assert client.create_session() == "abc123"

        request = fake_driver.calls("POST", "/session")[0]
        assert request["body"]["capabilities"]["alwaysMatch"]["browserName"] == "safari"
        assert request["headers"]["content-type"] == "application/json"

    def test_get_request_has_no_body(self, fake_driver, client):
        fake_driver.route("GET", "/session/s1/title", (200, {"value": "Example Domain"}))

        assert client.get_title("s1") == "Example Domain"
        assert fake_driver.calls("GET", "/session/s1/title")[0]["body"] is None

    def test_navigate(self, fake_driver, client):
        fake_driver.route("POST", "/session/s1/url", (200, {"value": None}))

        assert client.navigate_to("s1", "https://example.com") is None
        assert fake_driver.calls("POST", "/session/s1/url")[0]["body"] == {"url": "https://example.com"}

    def test_find_and_click(self, fake_driver, client):
        fake_driver.route("POST", "/session/s1/element", (200, {"value": {ELEMENT_KEY: "node-1"}}))
        fake_driver.route("POST", "/session/s1/element/node-1/click", (200, {"value": None}))

        element_id = client.find_element("s1", "css selector", "button.submit")
        client.click_element("s1", element_id)

        find = fake_driver.calls("POST", "/session/s1/element")[0]
        assert find["body"] == {"using": "css selector", "value": "button.submit"}
        assert len(fake_driver.calls("POST", "/session/s1/element/node-1/click")) == 1

    def test_delete_session(self, fake_driver, client):
        fake_driver.route("DELETE", "/session/s1", (200, {"value": None}))
        client.delete_session("s1")
        assert len(fake_driver.calls("DELETE", "/session/s1")) == 1


@pytest.mark.integration
class TestErrors:
    def test_plain_text_404(self, fake_driver, client):
        fake_driver.route("GET", "/status", (404, "Not Found"))

        with pytest.raises(HTTPStatusError) as exc_info:
            client.get_status()

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == "Not Found"

    def test_plain_text_success(self, fake_driver, client):
        fake_driver.route("GET", "/session/s1/source", (200, "<html></html>"))
        assert client.get_page_source("s1") == "<html></html>"

    def test_invalid_session(self, fake_driver, client):
        fake_driver.route(
            "GET",
            "/session/gone/url",
            (404, {"value": {"error": "invalid session id", "message": "Session does not exist"}}),
        )

        with pytest.raises(ProtocolError) as exc_info:
            client.get_current_url("gone")

        assert exc_info.value.is_invalid_session
        assert exc_info.value.message == "Session does not exist"
        assert exc_info.value.status_code == 404

    def test_unknown_route(self, fake_driver, client):
        with pytest.raises(ProtocolError, match="No route"):
            client.get_window_handles("s1")

    def test_connection_refused(self, unused_port):
        client = WebDriverClient(unused_port, host="127.0.0.1", timeout=2.0)

        with pytest.raises(WebDriverConnectionError) as exc_info:
            client.get_status()

        assert exc_info.value.details["address"] == f"http://127.0.0.1:{unused_port}"

    def test_non_http_reply(self):
        """A listener that answers with garbage surfaces as a connection error."""
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        port = server.getsockname()[1]

        def answer_garbage():
            conn, _ = server.accept()
            with conn:
                conn.recv(65536)
                conn.sendall(b"garbage\r\n\r\n")

        thread = threading.Thread(target=answer_garbage, daemon=True)
        thread.start()
        try:
            client = WebDriverClient(port, host="127.0.0.1", timeout=5.0)
            with pytest.raises(WebDriverConnectionError) as exc_info:
                client.get_status()
        finally:
            thread.join(timeout=5)
            server.close()

        assert exc_info.value.details["address"] == f"http://127.0.0.1:{port}"
