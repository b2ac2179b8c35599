import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    # --- Busca de CID (Clinical Tables / NLM) ---
    CID_API_URL = os.environ.get(
        "CID_API_URL",
        "https://clinicaltables.nlm.nih.gov/api/icd10cm/v3/search",
    )
    CID_TIMEOUT = float(os.environ.get("CID_TIMEOUT", "5"))
    CID_DEBOUNCE_MS = int(os.environ.get("CID_DEBOUNCE_MS", "500"))  # espera sem digitação
    CID_MIN_LENGTH = int(os.environ.get("CID_MIN_LENGTH", "3"))
    # --- Documento ---
    LOCAL_EMISSAO = os.environ.get("LOCAL_EMISSAO", "Goiânia/GO")
    CABECALHO_ENDERECO = os.environ.get(
        "CABECALHO_ENDERECO",
        "Rua 235, nº 285, Quadra 68, Lote Área, s/nº, Setor Leste Universitário - "
        "Fone: (62) 3269-8200 - Goiânia - GO, 74605-050",
    )
    CABECALHO_LOGO_URL = os.environ.get("CABECALHO_LOGO_URL", "https://i.imgur.com/LoP97om.png")
    # --- Estado por sessão (memória do processo) ---
    STATE_MAX_ENTRIES = int(os.environ.get("STATE_MAX_ENTRIES", "256"))
    STATE_TTL_SECONDS = int(os.environ.get("STATE_TTL_SECONDS", "7200"))
    # --- Logging ---
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
