from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField
from wtforms.validators import Optional, Regexp

from .state import LIMITES_INTERCONSULTA

CAMPOS_ATESTADO = (
    "patient_name",
    "patient_id",
    "cid",
    "days_off",
    "start_date",
    "attestation_date",
)


class AtestadoForm(FlaskForm):
    patient_name = StringField("Nome do paciente:")
    patient_id = StringField("Nº Identidade e/ou CPF:")
    cid = StringField(
        "CID:",
        render_kw={"placeholder": "Pesquisar por código ou nome...", "autocomplete": "off"},
    )
    days_off = StringField(
        "Dias de Afastamento:",
        validators=[Optional(), Regexp(r"^\d+$", message="Informe apenas números.")],
        render_kw={"inputmode": "numeric"},
    )
    # Datas chegam cruas; a máscara DD/MM/AAAA é aplicada no estado
    start_date = StringField("Início do Afastamento:", render_kw={"placeholder": "DD/MM/AAAA"})
    attestation_date = StringField(
        "Data de Emissão do Atestado:", render_kw={"placeholder": "DD/MM/AAAA"}
    )

    def field_values(self) -> dict[str, str]:
        """Valores enviados e válidos; ausentes ou com erro ficam de fora."""
        return {
            name: (self[name].data or "")
            for name in CAMPOS_ATESTADO
            if self[name].raw_data and not self[name].errors
        }


class GeneratedTextForm(FlaskForm):
    generated_text = TextAreaField(
        "Texto do Atestado (editável):",
        render_kw={"rows": 5, "placeholder": "O texto do atestado aparecerá aqui..."},
    )


CAMPOS_INTERCONSULTA = ("origin_sector", "referral_service", "clinical_summary", "request_date")


class InterconsultaForm(FlaskForm):
    # Excesso é truncado no estado; maxlength só orienta o navegador
    origin_sector = StringField(
        "Especialidade de Origem:",
        render_kw={"maxlength": LIMITES_INTERCONSULTA["origin_sector"]},
    )
    referral_service = StringField(
        "Encaminhamento ao Serviço de:",
        render_kw={"maxlength": LIMITES_INTERCONSULTA["referral_service"]},
    )
    clinical_summary = TextAreaField(
        "Justificativa:",
        render_kw={
            "maxlength": LIMITES_INTERCONSULTA["clinical_summary"],
            "rows": 6,
            "placeholder": (
                "Descreva o quadro clínico, hipóteses diagnósticas e o motivo da interconsulta..."
            ),
        },
    )
    request_date = StringField("Data:", render_kw={"placeholder": "DD/MM/AAAA"})
