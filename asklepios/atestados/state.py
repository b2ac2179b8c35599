"""Estado da página do atestado (um por sessão do navegador).

Não há banco: cada sessão recebe um token opaco no cookie e o estado fica
em memória do processo, no mesmo estilo dos caches em nível de módulo.
O store é limitado (quantidade e tempo ocioso); reiniciar o processo descarta tudo.
"""

from __future__ import annotations

import logging
import re
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import asdict, dataclass, field, replace
from datetime import date
from typing import Any, Callable

from ..cid.suggestions import CidSuggestions
from .services import build_certificate_text, format_date_input, is_valid_date, today_str

# Limites de caracteres da interconsulta
LIMITES_INTERCONSULTA: dict[str, int] = {
    "origin_sector": 41,
    "referral_service": 37,
    "clinical_summary": 517,
}


# Limites do store de estados por sessão
MAX_ESTADOS = 256
ESTADO_TTL_SEGUNDOS = 2 * 60 * 60

logger = logging.getLogger("atestados.state")


class LineBreakNotAllowed(ValueError):
    """Quebra de linha digitada no resumo clínico."""


@dataclass(frozen=True)
class FormData:
    patient_name: str = ""
    patient_id: str = ""  # RG e/ou CPF
    cid: str = ""
    days_off: str = ""
    start_date: str = ""  # início do afastamento
    attestation_date: str = ""  # data de emissão

    @classmethod
    def empty(cls, today: date | None = None) -> "FormData":
        return cls(attestation_date=today_str(today))

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class RequestDetails:
    origin_sector: str = ""
    referral_service: str = ""
    clinical_summary: str = ""
    request_date: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _clean_request(data: dict[str, Any]) -> RequestDetails:
    values: dict[str, str] = {}
    for name in ("origin_sector", "referral_service", "clinical_summary", "request_date"):
        value = str(data.get(name) or "")
        if name == "clinical_summary" and ("\n" in value or "\r" in value):
            raise LineBreakNotAllowed("Quebras de linha não são permitidas.")
        limit = LIMITES_INTERCONSULTA.get(name)
        if limit and len(value) > limit:
            value = value[:limit]
        if name == "request_date":
            value = format_date_input(value)
        values[name] = value
    return RequestDetails(**values)


@dataclass
class AtestadoState:
    form: FormData = field(default_factory=FormData.empty)
    generated_text: str = ""
    is_date_invalid: bool = False
    interconsultas: list[RequestDetails] = field(default_factory=list)
    sugestoes: CidSuggestions = field(default_factory=CidSuggestions, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._recompute()

    # -------- formulário principal --------
    def update(self, **changes: str) -> FormData:
        """Substitui o FormData inteiro e recalcula texto e flag de data.

        Datas passam pela máscara DD/MM/AAAA. Campos desconhecidos são
        ignorados.
        """
        allowed = {k: v for k, v in changes.items() if k in FormData.__dataclass_fields__}
        for key in ("start_date", "attestation_date"):
            if key in allowed:
                allowed[key] = format_date_input(allowed[key])
        previous_cid = self.form.cid
        self.form = replace(self.form, **{k: v or "" for k, v in allowed.items()})
        self._recompute()
        if self.form.cid != previous_cid:
            self.sugestoes.sync(self.form.cid)
        return self.form

    def edit_text(self, text: str) -> str:
        # última escrita vence; não volta para os campos
        self.generated_text = re.sub(r"[\r\n]", " ", text or "")
        return self.generated_text

    def select_cid(self, code: str) -> None:
        self.update(cid=self.sugestoes.select(code))
        self.sugestoes.close()

    def reset(self, today: date | None = None) -> None:
        self.form = FormData.empty(today)
        self.is_date_invalid = False
        self.sugestoes.sync("")
        self._recompute()

    @property
    def can_print(self) -> bool:
        return not self.is_date_invalid

    def _recompute(self) -> None:
        self.generated_text = build_certificate_text(self.form)
        start = self.form.start_date
        # vazio não é erro
        self.is_date_invalid = bool(start) and not is_valid_date(start)

    # -------- interconsultas --------
    def add_request(self) -> RequestDetails:
        item = RequestDetails()
        self.interconsultas.append(item)
        return item

    def duplicate_request(self, index: int) -> RequestDetails:
        copia = replace(self.interconsultas[index])
        self.interconsultas.append(copia)
        return copia

    def remove_request(self, index: int) -> RequestDetails:
        return self.interconsultas.pop(index)

    def update_request(self, index: int, data: dict[str, Any]) -> RequestDetails:
        current = self.interconsultas[index].to_dict()
        current.update({k: v for k, v in data.items() if k in current})
        item = _clean_request(current)
        self.interconsultas[index] = item
        return item


class StateStore:
    """Estados por token de sessão (process local).

    Limitado em quantidade (os menos usados saem primeiro) e em tempo ocioso:
    um estado sem acesso há mais de ``ttl`` segundos é descartado no próximo
    ``get``.
    """

    def __init__(
        self,
        factory: Callable[[], AtestadoState] = AtestadoState,
        *,
        max_entries: int = MAX_ESTADOS,
        ttl: float = ESTADO_TTL_SEGUNDOS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock
        # token -> (estado, último acesso); ordem = do menos ao mais recente
        self._states: OrderedDict[str, tuple[AtestadoState, float]] = OrderedDict()
        self._lock = threading.Lock()

    def configure(self, *, max_entries: int | None = None, ttl: float | None = None) -> None:
        with self._lock:
            if max_entries is not None:
                self.max_entries = max(1, int(max_entries))
            if ttl is not None:
                self.ttl = float(ttl)
            self._evict(self._clock())

    def new_token(self) -> str:
        return uuid.uuid4().hex

    def get(
        self, token: str, factory: Callable[[], AtestadoState] | None = None
    ) -> AtestadoState:
        with self._lock:
            now = self._clock()
            entry = self._states.pop(token, None)
            self._evict(now)
            if entry is not None and now - entry[1] <= self.ttl:
                state = entry[0]
            else:
                state = (factory or self._factory)()
            self._states[token] = (state, now)
            self._evict(now)
            return state

    def discard(self, token: str) -> None:
        with self._lock:
            self._states.pop(token, None)

    def _evict(self, now: float) -> None:
        while self._states:
            token, (_, seen) = next(iter(self._states.items()))
            if now - seen <= self.ttl and len(self._states) <= self.max_entries:
                break
            self._states.popitem(last=False)
            logger.debug("Estado da sessão %s descartado", token[:8])

    def __contains__(self, token: str) -> bool:
        return token in self._states

    def __len__(self) -> int:
        return len(self._states)


# Store global do processo
_STORE = StateStore()


def get_store() -> StateStore:
    return _STORE
