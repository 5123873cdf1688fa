import pytest
from fastapi.testclient import TestClient

from findingaid_server import handlers, http_gateway, resolver
from findingaid_shared.errors import BackendError


class FailingResolver(resolver.Resolver):
    def __init__(self):
        self.closed = False

    async def get_repo(self, id):
        raise BackendError("network unreachable")

    async def close(self):
        self.closed = True


@pytest.fixture
def client(mem_resolver, template):
    return TestClient(http_gateway.create_app(mem_resolver, template))


def test_redirects_with_see_other(client):
    rsp = client.get("/1360391327", follow_redirects=False)

    assert rsp.status_code == 303
    assert rsp.headers["location"] == (
        "https://raw.githubusercontent.com/sfomuseum-data/sfomuseum-data-maps/main/data/"
        "136/039/132/7/1360391327.geojson"
    )


def test_redirects_nested_path(client):
    rsp = client.get("/102/527/513/102527513.geojson", follow_redirects=False)

    assert rsp.status_code == 303
    assert rsp.headers["location"].endswith("/sfomuseum-data-whosonfirst/main/data/102/527/513/102527513.geojson")


@pytest.mark.parametrize("path", ["/", "/abc", "/123abc.geojson"])
def test_malformed_paths_are_bad_requests(client, path):
    rsp = client.get(path, follow_redirects=False)

    assert rsp.status_code == 400
    assert rsp.text == "Bad Request"
    assert "location" not in rsp.headers


def test_unknown_identifier_is_not_found(client):
    rsp = client.get("/1", follow_redirects=False)

    assert rsp.status_code == 404
    assert rsp.text == "Not Found"


def test_backend_failure_is_server_error(template):
    failing = FailingResolver()
    with TestClient(http_gateway.create_app(failing, template)) as client:
        rsp = client.get("/1360391327", follow_redirects=False)

        assert rsp.status_code == 500
        assert rsp.text == "Internal Server Error"
        assert "location" not in rsp.headers
        assert "network" not in rsp.text

    assert failing.closed


def test_favicon_never_reaches_parser(client, monkeypatch):
    async def fail(*_args, **_kwargs):
        raise AssertionError("favicon should not be resolved")

    monkeypatch.setattr(handlers, "resolve_redirect", fail)

    rsp = client.get("/favicon.ico", follow_redirects=False)

    assert rsp.status_code == 204
    assert rsp.content == b""

    rsp = client.head("/favicon.ico", follow_redirects=False)

    assert rsp.status_code == 204


def test_unexpected_errors_are_server_errors(client, monkeypatch):
    async def explode(*_args, **_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(handlers, "resolve_redirect", explode)

    rsp = client.get("/1360391327", follow_redirects=False)

    assert rsp.status_code == 500
    assert "boom" not in rsp.text


def test_head_requests_redirect(client):
    rsp = client.head("/1360391327", follow_redirects=False)
    assert rsp.status_code == 303
