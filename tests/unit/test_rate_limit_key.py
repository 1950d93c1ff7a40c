"""Which address a request is rate-limited under."""

from starlette.requests import Request

from tuitionhub.middleware.rate_limit import client_key

PROXY = "10.0.0.2"


def _request(peer: str, forwarded: str | None = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded is not None else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "client": (peer, 51000)})


def test_peer_used_without_trusted_proxies():
    assert client_key(_request("198.51.100.4", "1.2.3.4")) == "198.51.100.4"


def test_untrusted_peer_header_ignored():
    assert client_key(_request("198.51.100.4", "1.2.3.4"), frozenset({PROXY})) == "198.51.100.4"


def test_trusted_proxy_uses_nearest_untrusted_hop():
    request = _request(PROXY, "1.2.3.4, 203.0.113.9, 10.0.0.3")
    assert client_key(request, frozenset({PROXY, "10.0.0.3"})) == "203.0.113.9"


def test_trusted_proxy_without_header_falls_back_to_peer():
    assert client_key(_request(PROXY), frozenset({PROXY})) == PROXY


def test_missing_client():
    request = Request({"type": "http", "method": "GET", "path": "/", "headers": []})
    assert client_key(request) == "unknown"
