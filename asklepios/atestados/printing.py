"""Impressão do atestado.

O documento de impressão é uma página HTML completa (folha de estilos de
impressão + marcação da prévia) que a janela secundária abre, imprime e
fecha. Também gera o mesmo conteúdo em PDF A4 com reportlab.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any

from flask import current_app, render_template
from jinja2 import TemplateNotFound
from markupsafe import escape
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from .services import body_text, date_by_extenso
from .state import AtestadoState

PREVIEW_TEMPLATE = "atestados/_preview.html"
PRINT_STYLES_TEMPLATE = "atestados/_print_styles.html"
PRINT_TEMPLATE = "atestados/imprimir.html"

PRINT_ERROR_MSG = (
    "Ocorreu um erro ao tentar preparar a impressão. Por favor, recarregue a página."
)
INVALID_DATE_MSG = "A data de início do afastamento é inválida."
RODAPE_LEGAL = (
    '"O presente atestado é fornecido com ciência dos dispositivos legais vigentes '
    "(Código Penal, Artigo 302), encontrando-se laudo detalhado sobre o caso à "
    'disposição a quem de direito possa interessar."'
)

logger = logging.getLogger("atestados.print")


class PrintRenderError(RuntimeError):
    """Elementos necessários para a impressão não foram encontrados."""


class PrintBlocked(RuntimeError):
    """Impressão desabilitada enquanto a data de início é inválida."""


def preview_context(state: AtestadoState) -> dict[str, Any]:
    cfg = current_app.config
    return {
        "corpo": body_text(state.form, state.generated_text),
        "emissao": date_by_extenso(state.form.attestation_date),
        "local_emissao": cfg.get("LOCAL_EMISSAO", ""),
        "cabecalho_endereco": cfg.get("CABECALHO_ENDERECO", ""),
        "cabecalho_logo": cfg.get("CABECALHO_LOGO_URL", ""),
        "rodape_legal": RODAPE_LEGAL,
    }


def render_print_document(state: AtestadoState) -> str:
    """Serializa estilos + prévia num documento HTML pronto para imprimir."""
    if not state.can_print:
        raise PrintBlocked(INVALID_DATE_MSG)
    ctx = preview_context(state)
    try:
        styles = render_template(PRINT_STYLES_TEMPLATE)
        preview = render_template(PREVIEW_TEMPLATE, **ctx)
    except TemplateNotFound as exc:
        logger.error("Elemento para impressão ou template de estilos não encontrados: %s", exc)
        raise PrintRenderError(PRINT_ERROR_MSG) from exc
    if not styles.strip() or 'id="printable-container"' not in preview:
        logger.error("Prévia de impressão vazia ou sem container")
        raise PrintRenderError(PRINT_ERROR_MSG)
    return render_template(PRINT_TEMPLATE, print_styles=styles, preview=preview)


def build_pdf(state: AtestadoState) -> BytesIO:
    if not state.can_print:
        raise PrintBlocked(INVALID_DATE_MSG)
    ctx = preview_context(state)
    buffer = BytesIO()
    pdf = SimpleDocTemplate(buffer, pagesize=A4, topMargin=2 * cm, bottomMargin=2 * cm)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "AtestadoTitulo",
        parent=styles["Title"],
        fontName="Times-Bold",
        fontSize=16,
        alignment=TA_CENTER,
        spaceAfter=24,
    )
    body_style = ParagraphStyle(
        "AtestadoCorpo",
        parent=styles["Normal"],
        fontName="Times-Roman",
        fontSize=12,
        alignment=TA_JUSTIFY,
        leading=22,
        firstLineIndent=1.2 * cm,
    )
    small_center = ParagraphStyle(
        "AtestadoRodape",
        parent=styles["Normal"],
        fontName="Times-Italic",
        fontSize=9,
        alignment=TA_CENTER,
        leading=12,
    )
    right_style = ParagraphStyle("AtestadoData", parent=body_style, alignment=TA_RIGHT)
    center_style = ParagraphStyle(
        "AtestadoAssinatura", parent=body_style, alignment=TA_CENTER, firstLineIndent=0
    )

    story: list[Any] = []
    if ctx["cabecalho_endereco"]:
        story.append(Paragraph(str(escape(ctx["cabecalho_endereco"])), small_center))
        story.append(Spacer(1, 12))
    story.append(Paragraph("<u>ATESTADO MÉDICO</u>", title_style))
    # fontes padrão do PDF não têm o espaço de largura zero dos placeholders
    corpo = ctx["corpo"].replace("\u200b", "")
    story.append(Paragraph(str(escape(corpo)), body_style))
    story.append(Spacer(1, 36))
    emissao = ctx["emissao"]
    story.append(
        Paragraph(
            f"{escape(ctx['local_emissao'])}, {emissao['day']} de {emissao['month']} "
            f"de {emissao['year']}.",
            right_style,
        )
    )
    story.append(Spacer(1, 48))
    story.append(Paragraph("_" * 50, center_style))
    story.append(Paragraph("<b>Médico/CRM</b>", center_style))
    story.append(Spacer(1, 24))
    story.append(Paragraph(str(escape(ctx["rodape_legal"])), small_center))
    pdf.build(story)
    buffer.seek(0)
    return buffer


def pdf_filename(state: AtestadoState) -> str:
    nome = (state.form.patient_name or "paciente").strip().replace(" ", "_")
    return f"Atestado_{nome}.pdf"
