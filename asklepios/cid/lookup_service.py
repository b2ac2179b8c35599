"""Consulta remota de códigos CID.

Usa a API pública Clinical Tables (NLM), que devolve um array de 4
posições onde o índice 3 contém pares [código, nome]. Qualquer desvio
desse formato, erro de rede ou HTTP vira "nenhum resultado".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_API_URL = "https://clinicaltables.nlm.nih.gov/api/icd10cm/v3/search"
MIN_QUERY_LENGTH = 3

CID_CODE_PATTERN = re.compile(r"^[A-Z]\d{2}(\.\d{1,2})?$")

logger = logging.getLogger("cid.lookup")

# Sessão HTTP do módulo (criada sob demanda em _session())
__SESSION: requests.Session | None = None


@dataclass(frozen=True)
class CidResult:
    codigo: str
    descricao: str

    def to_dict(self) -> dict[str, str]:
        return {"codigo": self.codigo, "descricao": self.descricao}


def is_cid_code(text: str | None) -> bool:
    """Texto já é um código (ex: A15, A15.2); não há o que pesquisar."""
    return bool(CID_CODE_PATTERN.match(text or ""))


def should_search(text: str | None, min_length: int = MIN_QUERY_LENGTH) -> bool:
    term = text or ""
    return len(term) >= min_length and not is_cid_code(term)


def parse_payload(data: Any) -> list[CidResult]:
    if not isinstance(data, list) or len(data) <= 3 or not isinstance(data[3], list):
        return []
    results: list[CidResult] = []
    for item in data[3]:
        if not isinstance(item, (list, tuple)) or len(item) < 2:
            continue
        results.append(CidResult(codigo=str(item[0]), descricao=str(item[1])))
    return results


def search_cid(
    term: str,
    *,
    api_url: str = DEFAULT_API_URL,
    timeout: float = 5.0,
    session: requests.Session | None = None,
) -> list[CidResult]:
    """Busca códigos por termo livre. Nunca lança: falhas viram lista vazia."""
    params = {"sf": "code,name", "terms": term}
    http = session or _session()
    try:
        resp = http.get(api_url, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except (requests.exceptions.RequestException, ValueError) as exc:
        logger.warning("Falha ao buscar códigos CID (%r): %s", term, exc)
        return []
    results = parse_payload(data)
    if not results:
        logger.debug("Nenhum CID para %r", term)
    return results


def _session() -> requests.Session:
    # Sessão com keep-alive e poucas retentativas
    global __SESSION
    if isinstance(__SESSION, requests.Session):
        return __SESSION
    s = requests.Session()
    retry = Retry(total=2, backoff_factor=0.3, status_forcelist=(429, 500, 502, 503, 504))
    adapter = HTTPAdapter(max_retries=retry, pool_connections=2, pool_maxsize=4)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    __SESSION = s
    return s
