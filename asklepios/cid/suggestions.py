"""Controle das sugestões de CID exibidas sob o campo.

Cada busca recebe um número de geração crescente; respostas de gerações
antigas são descartadas, então só o resultado da última requisição fica.
O debounce (espera de 500 ms sem digitação) usa um timer injetável para
permitir testes determinísticos.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Sequence

from .lookup_service import MIN_QUERY_LENGTH, CidResult, search_cid, should_search

DEBOUNCE_SECONDS = 0.5

Fetcher = Callable[[str], Sequence[CidResult]]
TimerFactory = Callable[..., Any]

logger = logging.getLogger("cid.suggestions")


class CidSuggestions:
    def __init__(
        self,
        fetch: Fetcher = search_cid,
        *,
        delay: float = DEBOUNCE_SECONDS,
        min_length: int = MIN_QUERY_LENGTH,
        timer_factory: TimerFactory = threading.Timer,
    ):
        self._fetch = fetch
        self.delay = delay
        self.min_length = min_length
        self._timer_factory = timer_factory
        self._timer: Any = None
        self._generation = 0
        self._lock = threading.Lock()
        self.results: list[CidResult] = []
        self.is_open = False
        self.is_searching = False
        self.last_term = ""

    @property
    def generation(self) -> int:
        return self._generation

    # -------- ciclo de busca --------
    def sync(self, text: str | None) -> bool:
        """Reage a mudança no campo sem buscar.

        Qualquer mudança invalida buscas em voo. Retorna True quando o texto
        pede busca; caso contrário (curto demais ou já é um código) limpa as
        sugestões.
        """
        self._cancel_timer()
        with self._lock:
            self._generation += 1
        if should_search(text, self.min_length):
            return True
        with self._lock:
            self.results = []
            self.is_open = False
            self.is_searching = False
        return False

    def on_change(self, text: str | None) -> None:
        """Agenda a busca para depois da janela de debounce (trailing edge)."""
        if not self.sync(text):
            return
        timer = self._timer_factory(self.delay, self._run, args=(text or "",))
        if hasattr(timer, "daemon"):
            timer.daemon = True
        self._timer = timer
        timer.start()

    def begin(self, term: str) -> int:
        with self._lock:
            self._generation += 1
            self.is_searching = True
            self.last_term = term
            return self._generation

    def complete(self, generation: int, results: Sequence[CidResult]) -> bool:
        """Aplica resultados se ainda forem da última busca."""
        with self._lock:
            if generation != self._generation:
                logger.debug(
                    "Descartando resposta CID antiga (%s != %s)", generation, self._generation
                )
                return False
            self.results = list(results)
            self.is_open = bool(self.results)
            self.is_searching = False
            return True

    def search_now(self, term: str, fetch: Fetcher | None = None) -> list[CidResult]:
        generation = self.begin(term)
        results = (fetch or self._fetch)(term)
        self.complete(generation, results)
        return list(self.results) if generation == self._generation else []

    def _run(self, term: str) -> None:
        self._timer = None
        self.search_now(term)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel(self) -> None:
        """Encerramento: descarta timer pendente e qualquer resposta em voo."""
        self._cancel_timer()
        with self._lock:
            self._generation += 1
            self.is_searching = False

    # -------- lista suspensa --------
    def select(self, codigo: str) -> str:
        self.is_open = False
        return codigo

    def close(self) -> None:
        self.is_open = False

    def focus(self) -> None:
        if self.results:
            self.is_open = True

    def pointer_down(self, inside: bool) -> None:
        # clique fora do container fecha a lista
        if not inside:
            self.close()
