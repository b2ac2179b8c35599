import os
from functools import partial

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    make_response,
    redirect,
    render_template,
    request,
    send_file,
    send_from_directory,
    session,
    url_for,
)

from ..cid.lookup_service import search_cid, should_search
from ..cid.suggestions import CidSuggestions
from .forms import CAMPOS_INTERCONSULTA, AtestadoForm, GeneratedTextForm, InterconsultaForm
from .printing import (
    PrintBlocked,
    PrintRenderError,
    build_pdf,
    pdf_filename,
    preview_context,
    render_print_document,
)
from .state import LIMITES_INTERCONSULTA, AtestadoState, LineBreakNotAllowed, get_store

atestados_bp = Blueprint(
    "atestados",
    __name__,
    template_folder=".",
)

_TOKEN_KEY = "atestado_token"


def _state() -> AtestadoState:
    """Estado da página ligado ao cookie de sessão (cria na primeira visita)."""
    store = get_store()
    token = session.get(_TOKEN_KEY)
    if not token:
        token = store.new_token()
        session[_TOKEN_KEY] = token
    return store.get(token, factory=_new_state)


def _new_state() -> AtestadoState:
    min_length = int(current_app.config.get("CID_MIN_LENGTH", 3))
    return AtestadoState(sugestoes=CidSuggestions(min_length=min_length))


def _cid_fetcher():
    cfg = current_app.config
    return partial(
        search_cid,
        api_url=cfg.get("CID_API_URL"),
        timeout=float(cfg.get("CID_TIMEOUT", 5.0)),
    )


def _toast(message: str, category: str = "success") -> str:
    return render_template("atestados/_toast.html", message=message, category=category)


def _no_store(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _interconsulta_forms(state: AtestadoState) -> list[InterconsultaForm]:
    return [
        InterconsultaForm(prefix=f"ic{i}", data=item.to_dict(), formdata=None)
        for i, item in enumerate(state.interconsultas)
    ]


def _render_interconsultas(state: AtestadoState, toast: str = ""):
    html = render_template(
        "atestados/_interconsultas.html",
        itens=list(zip(state.interconsultas, _interconsulta_forms(state))),
    )
    return _no_store(make_response(html + toast))


@atestados_bp.route("/gerar.js")
def gerar_js():
    """Serve the gerar.js script located next to the templates in this package."""
    root = os.path.dirname(__file__)
    return send_from_directory(root, "gerar.js")


@atestados_bp.route("/")
def index():
    state = _state()
    form = AtestadoForm(data=state.form.to_dict(), formdata=None)
    texto_form = GeneratedTextForm(data={"generated_text": state.generated_text}, formdata=None)
    return render_template(
        "atestados/gerar.html",
        form=form,
        texto_form=texto_form,
        state=state,
        interconsultas=list(zip(state.interconsultas, _interconsulta_forms(state))),
        **preview_context(state),
    )


@atestados_bp.post("/campos")
def atualizar_campos():
    """Recebe o formulário inteiro a cada digitação e devolve o texto recalculado."""
    state = _state()
    form = AtestadoForm()
    form.validate()
    state.update(**form.field_values())
    resp = make_response(render_template("atestados/_campos.html", state=state))
    return _no_store(resp)


@atestados_bp.post("/texto")
def editar_texto():
    state = _state()
    form = GeneratedTextForm()
    state.edit_text(form.generated_text.data or "")
    return _no_store(make_response("", 204))


@atestados_bp.post("/limpar")
def limpar():
    state = _state()
    state.reset()
    flash("Formulário limpo com sucesso!", "success")
    return redirect(url_for("atestados.index"))


# ---------------- CID ----------------


@atestados_bp.get("/cid")
def sugestoes_cid():
    """Fragmento HTMX com sugestões de CID.

    O debounce acontece no navegador (hx-trigger com delay); aqui cada
    requisição ganha uma geração e respostas superadas não são aplicadas.
    """
    state = _state()
    termo = (request.args.get("cid") or "").strip()
    sugestoes = state.sugestoes
    if not should_search(termo, sugestoes.min_length):
        sugestoes.sync(termo)
        html = render_template("atestados/_cid_sugestoes.html", sugestoes=sugestoes)
        return _no_store(make_response(html))
    geracao = sugestoes.begin(termo)
    resultados = _cid_fetcher()(termo)
    if not sugestoes.complete(geracao, resultados):
        # uma busca mais nova já assumiu; não trocar o conteúdo
        resp = make_response("", 204)
        resp.headers["HX-Reswap"] = "none"
        return _no_store(resp)
    html = render_template("atestados/_cid_sugestoes.html", sugestoes=sugestoes)
    return _no_store(make_response(html))


@atestados_bp.post("/cid/selecionar")
def selecionar_cid():
    state = _state()
    codigo = (request.form.get("codigo") or "").strip()
    if not codigo:
        abort(400)
    state.select_cid(codigo)
    html = render_template("atestados/_cid_selecionado.html", state=state)
    return _no_store(make_response(html))


@atestados_bp.post("/cid/fechar")
def fechar_cid():
    state = _state()
    state.sugestoes.pointer_down(inside=request.form.get("inside") == "1")
    html = render_template("atestados/_cid_sugestoes.html", sugestoes=state.sugestoes)
    return _no_store(make_response(html))


@atestados_bp.get("/cid/abrir")
def abrir_cid():
    state = _state()
    state.sugestoes.focus()
    html = render_template("atestados/_cid_sugestoes.html", sugestoes=state.sugestoes)
    return _no_store(make_response(html))


# ---------------- Interconsultas ----------------


@atestados_bp.post("/interconsultas")
def adicionar_interconsulta():
    state = _state()
    state.add_request()
    return _render_interconsultas(state)


@atestados_bp.post("/interconsultas/<int:index>")
def atualizar_interconsulta(index: int):
    state = _state()
    if not 0 <= index < len(state.interconsultas):
        abort(404)
    form = InterconsultaForm(prefix=f"ic{index}")
    dados = {name: form[name].data for name in CAMPOS_INTERCONSULTA if form[name].raw_data}
    # campo segue no navegador; a resposta só carrega contadores e aviso (swap oob)
    aviso = ""
    try:
        state.update_request(index, dados)
    except LineBreakNotAllowed as exc:
        aviso = _toast(str(exc), "danger")
    contadores = render_template(
        "atestados/_contadores.html",
        i=index,
        item=state.interconsultas[index].to_dict(),
        limites=LIMITES_INTERCONSULTA,
    )
    return _no_store(make_response(contadores + aviso))


@atestados_bp.post("/interconsultas/<int:index>/duplicar")
def duplicar_interconsulta(index: int):
    state = _state()
    if not 0 <= index < len(state.interconsultas):
        abort(404)
    state.duplicate_request(index)
    return _render_interconsultas(state, _toast("Interconsulta duplicada."))


@atestados_bp.post("/interconsultas/<int:index>/remover")
def remover_interconsulta(index: int):
    state = _state()
    if not 0 <= index < len(state.interconsultas):
        abort(404)
    state.remove_request(index)
    return _render_interconsultas(state, _toast("Interconsulta removida."))


# ---------------- Impressão ----------------


@atestados_bp.get("/imprimir")
def imprimir():
    state = _state()
    try:
        html = render_print_document(state)
    except PrintBlocked as exc:
        resp = make_response(render_template("atestados/_alerta.html", mensagem=str(exc)), 409)
        return _no_store(resp)
    except PrintRenderError as exc:
        current_app.logger.error("Falha ao preparar impressão: %s", exc)
        resp = make_response(render_template("atestados/_alerta.html", mensagem=str(exc)), 500)
        return _no_store(resp)
    return _no_store(make_response(html))


@atestados_bp.get("/pdf")
def gerar_pdf():
    state = _state()
    try:
        buffer = build_pdf(state)
    except PrintBlocked as exc:
        resp = make_response(render_template("atestados/_alerta.html", mensagem=str(exc)), 409)
        return _no_store(resp)
    return send_file(
        buffer,
        as_attachment=True,
        download_name=pdf_filename(state),
        mimetype="application/pdf",
    )
