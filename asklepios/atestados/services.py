"""Serviços de domínio do atestado.

Funções puras (sem acesso a request/sessão) usadas pelas rotas e pelo
estado da página: máscara e validação de datas, número por extenso e
montagem do texto do atestado.
"""

from __future__ import annotations

import re
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .state import FormData


DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")

# Placeholders exibidos quando o campo está vazio (prévia nunca fica em branco)
PH_NOME = "_____________________________\u200b____________________\u200b_______"
PH_DOCUMENTO = "_" * 26
PH_CID = "_" * 6
PH_DIAS = "____"
PH_EXTENSO = "_" * 10
PH_INICIO = "_" * 22

_UNIDADES = ["", "um", "dois", "três", "quatro", "cinco", "seis", "sete", "oito", "nove"]
_DEZ_A_DEZENOVE = [
    "dez",
    "onze",
    "doze",
    "treze",
    "catorze",
    "quinze",
    "dezesseis",
    "dezessete",
    "dezoito",
    "dezenove",
]
_DEZENAS = [
    "",
    "",
    "vinte",
    "trinta",
    "quarenta",
    "cinquenta",
    "sessenta",
    "setenta",
    "oitenta",
    "noventa",
]

MESES = [
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
]


# ===================== Datas =====================
def format_date_input(raw: str | None) -> str:
    """Aplica a máscara DD/MM/AAAA sobre o que foi digitado.

    Mantém apenas dígitos (no máximo 8) e insere as barras depois do
    2º e do 4º dígito.
    """
    digits = "".join(c for c in (raw or "") if c.isdigit())
    if len(digits) > 4:
        return f"{digits[:2]}/{digits[2:4]}/{digits[4:8]}"
    if len(digits) > 2:
        return f"{digits[:2]}/{digits[2:]}"
    return digits


def parse_date(value: str | None) -> date | None:
    if not value or not DATE_PATTERN.match(value):
        return None
    day, month, year = (int(p) for p in value.split("/"))
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    # ida e volta: 31/02 não sobrevive à construção
    if (parsed.day, parsed.month, parsed.year) != (day, month, year):
        return None
    return parsed


def is_valid_date(value: str | None) -> bool:
    return parse_date(value) is not None


def today_str(today: date | None = None) -> str:
    return (today or date.today()).strftime("%d/%m/%Y")


def date_by_extenso(value: str | None) -> dict[str, str]:
    """Quebra DD/MM/AAAA em dia, mês por extenso e ano para o rodapé.

    Datas incompletas retornam placeholders.
    """
    vazio = {"day": "__", "month": "______", "year": "____"}
    if not value or len(value) < 10:
        return vazio
    parts = value.split("/")
    if len(parts) != 3:
        return vazio
    try:
        month_idx = int(parts[1]) - 1
    except ValueError:
        month_idx = -1
    month = MESES[month_idx] if 0 <= month_idx < 12 else "______"
    return {"day": parts[0], "month": month, "year": parts[2]}


# ===================== Número por extenso =====================
def _to_positive_int(num_str: str | None) -> int | None:
    s = (num_str or "").strip()
    if not s:
        return None
    # parseInt-like: aceita sinal e prefixo numérico
    m = re.match(r"^[+-]?\d+", s)
    if not m:
        return None
    num = int(m.group(0))
    return num if num > 0 else None


def number_to_words_pt(num_str: str | None) -> str:
    """Número cardinal em português (0–99).

    Vazio, não numérico ou <= 0 retorna "...". A partir de 100 devolve os
    próprios dígitos (limitação conhecida; afastamentos tão longos são raros).
    """
    num = _to_positive_int(num_str)
    if num is None:
        return "..."
    if num < 10:
        return _UNIDADES[num]
    if num < 20:
        return _DEZ_A_DEZENOVE[num - 10]
    if num < 100:
        dezena, unidade = divmod(num, 10)
        return _DEZENAS[dezena] + (f" e {_UNIDADES[unidade]}" if unidade else "")
    return str(num)


def pad_days(num_str: str | None) -> str:
    num = _to_positive_int(num_str)
    if num is None:
        return PH_DIAS
    return str(num_str).strip().zfill(2)


# ===================== Texto do atestado =====================
def build_certificate_text(form: "FormData") -> str:
    nome = form.patient_name or PH_NOME
    documento = form.patient_id or PH_DOCUMENTO
    cid = form.cid or PH_CID
    dias = pad_days(form.days_off)
    extenso = number_to_words_pt(form.days_off)
    if extenso == "...":
        extenso = PH_EXTENSO
    inicio = form.start_date or PH_INICIO
    return (
        f"A pedido do(a) interessado(a) {nome}, Carteira de Identidade e/ou CPF nº "
        f"{documento}, e na qualidade de seu médico assistente, atesto, para os devidos "
        f"fins, que o(a) mesmo(a), por motivos de doença (CID: {cid}), ficou (ou estará) "
        f"impossibilitado(a) de exercer suas atividades durante {dias} ({extenso}) dias "
        f"a partir de {inicio}."
    )


def body_text(form: "FormData", generated_text: str) -> str:
    """Corpo impresso: texto editado quando houver, senão o texto montado."""
    return generated_text or build_certificate_text(form)
