import pytest


@pytest.mark.parametrize(
    "path",
    [
        "/atestados/",
        "/atestados/imprimir",
    ],
)
def test_routes_render_ok(client, path):
    resp = client.get(path)
    assert resp.status_code == 200, f"GET {path} should render 200, got {resp.status_code}"
    # basic HTML sanity
    assert b"<!doctype html" in resp.data.lower() or b"<html" in resp.data.lower()


def test_gerar_js(client):
    resp = client.get("/atestados/gerar.js")
    assert resp.status_code == 200
    assert b"maskDate" in resp.data


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}
