from asklepios.cid.lookup_service import CidResult
from asklepios.cid.suggestions import CidSuggestions


class FakeTimer:
    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args)


class Harness:
    def __init__(self, results=None):
        self.timers = []
        self.queries = []
        self.results = results if results is not None else [CidResult("E11.9", "Diabetes")]
        self.box = CidSuggestions(self.fetch, timer_factory=self.make_timer)

    def make_timer(self, interval, function, args=()):
        timer = FakeTimer(interval, function, args)
        self.timers.append(timer)
        return timer

    def fetch(self, term):
        self.queries.append(term)
        return self.results


def test_codigo_nao_dispara_busca():
    h = Harness()
    for texto in ("A15", "A15.2"):
        h.box.on_change(texto)
    assert h.timers == []
    assert h.queries == []
    assert h.box.results == []
    assert h.box.is_open is False


def test_texto_curto_nao_dispara_busca():
    h = Harness()
    h.box.on_change("di")
    assert h.timers == []


def test_busca_apos_debounce():
    h = Harness()
    h.box.on_change("diabetes")
    assert len(h.timers) == 1
    assert h.timers[0].interval == 0.5
    assert h.timers[0].started
    assert h.queries == []  # nada antes da janela
    h.timers[0].fire()
    assert h.queries == ["diabetes"]
    assert h.box.results == [CidResult("E11.9", "Diabetes")]
    assert h.box.is_open is True
    assert h.box.is_searching is False


def test_edicoes_dentro_da_janela_so_buscam_a_ultima():
    h = Harness()
    h.box.on_change("dia")
    h.box.on_change("diab")
    h.box.on_change("diabetes")
    assert [t.cancelled for t in h.timers] == [True, True, False]
    for t in h.timers:
        t.fire()
    assert h.queries == ["diabetes"]


def test_resposta_antiga_e_descartada():
    h = Harness()
    antiga = h.box.begin("diab")
    nova = h.box.begin("diabetes")
    assert h.box.complete(antiga, [CidResult("X00", "velho")]) is False
    assert h.box.results == []
    assert h.box.complete(nova, [CidResult("E11", "novo")]) is True
    assert h.box.results == [CidResult("E11", "novo")]


def test_edicao_durante_busca_invalida_resposta():
    h = Harness()
    digitou = []

    def fetch(term):
        h.queries.append(term)
        if not digitou:
            # usuário continua digitando enquanto a requisição está em voo
            digitou.append(True)
            h.box.on_change("diabetes mellitus")
            return [CidResult("E11", "antigo")]
        return [CidResult("E11.9", "Diabetes")]

    h.box = CidSuggestions(fetch, timer_factory=h.make_timer)
    h.box.on_change("diabetes")
    h.timers[0].fire()
    assert h.box.results == []
    assert len(h.timers) == 2
    h.timers[1].fire()
    assert h.queries == ["diabetes", "diabetes mellitus"]
    assert h.box.results == [CidResult("E11.9", "Diabetes")]


def test_mudar_para_codigo_limpa_sugestoes():
    h = Harness()
    h.box.on_change("diabetes")
    h.timers[0].fire()
    assert h.box.results
    h.box.on_change("E11")
    assert h.box.results == []
    assert h.box.is_open is False


def test_falha_vira_sem_sugestoes():
    h = Harness(results=[])
    h.box.on_change("xyzxyz")
    h.timers[0].fire()
    assert h.box.results == []
    assert h.box.is_open is False


def test_lista_fecha_ao_selecionar_e_clicar_fora():
    h = Harness()
    h.box.on_change("diabetes")
    h.timers[0].fire()
    assert h.box.select("E11.9") == "E11.9"
    assert h.box.is_open is False
    h.box.focus()
    assert h.box.is_open is True
    h.box.pointer_down(inside=True)
    assert h.box.is_open is True
    h.box.pointer_down(inside=False)
    assert h.box.is_open is False


def test_cancel_descarta_timer_pendente():
    h = Harness()
    h.box.on_change("diabetes")
    h.box.cancel()
    assert h.timers[0].cancelled
    h.timers[0].fire()
    assert h.queries == []
