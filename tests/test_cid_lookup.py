import pytest
import requests

from asklepios.cid.lookup_service import (
    CidResult,
    is_cid_code,
    parse_payload,
    search_cid,
    should_search,
)

from conftest import FakeResponse, FakeSession


@pytest.mark.parametrize(
    "text,ok",
    [
        ("A15", True),
        ("A15.2", True),
        ("Z00.01", True),
        ("a15", False),
        ("A1", False),
        ("A15.", False),
        ("A15.123", False),
        ("diabetes", False),
        ("", False),
    ],
)
def test_is_cid_code(text, ok):
    assert is_cid_code(text) is ok


def test_should_search():
    assert should_search("diabetes") is True
    assert should_search("dia") is True
    assert should_search("di") is False
    assert should_search("A15") is False
    assert should_search("A15.2") is False


def test_parse_payload():
    data = [2, ["E11.9", "E10.9"], None, [["E11.9", "Type 2 diabetes"], ["E10.9", "Type 1"]]]
    assert parse_payload(data) == [
        CidResult("E11.9", "Type 2 diabetes"),
        CidResult("E10.9", "Type 1"),
    ]


@pytest.mark.parametrize(
    "data",
    [None, {}, [], [1, 2, 3], [1, 2, 3, "x"], [1, 2, 3, None]],
)
def test_parse_payload_fora_do_formato(data):
    assert parse_payload(data) == []


def test_search_cid_monta_requisicao():
    payload = [1, ["J11"], None, [["J11", "Influenza"]]]
    session = FakeSession(FakeResponse(payload))
    results = search_cid("gripe", api_url="https://x.test/api", timeout=2, session=session)
    assert results == [CidResult("J11", "Influenza")]
    assert session.calls == [
        {
            "url": "https://x.test/api",
            "params": {"sf": "code,name", "terms": "gripe"},
            "timeout": 2,
        }
    ]


def test_search_cid_falha_de_rede_vira_lista_vazia(caplog):
    session = FakeSession(error=requests.exceptions.ConnectionError("offline"))
    with caplog.at_level("WARNING", logger="cid.lookup"):
        assert search_cid("diabetes", session=session) == []
    assert "Falha ao buscar códigos CID" in caplog.text


def test_search_cid_http_erro_vira_lista_vazia():
    session = FakeSession(FakeResponse(status_code=503))
    assert search_cid("diabetes", session=session) == []


def test_search_cid_json_invalido_vira_lista_vazia():
    session = FakeSession(FakeResponse(json_error=ValueError("no json")))
    assert search_cid("diabetes", session=session) == []
