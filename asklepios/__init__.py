import logging
import os

from flask import Flask
from flask_wtf import CSRFProtect

"""Aplicação principal e fábrica Flask.

Blueprints são importados dentro de create_app para evitar ciclos de
importação durante os testes.
"""


csrf = CSRFProtect()


def _configure_logging(app: Flask) -> None:
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)
    # loggers nomeados dos serviços (cid.lookup, cid.suggestions, atestados.print)
    for name in ("cid", "atestados"):
        logging.getLogger(name).setLevel(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)

    # Config padrão base
    app.config.from_object("config.Config")

    # Override opcional
    if config_object:
        app.config.from_object(config_object)

    csrf.init_app(app)
    _configure_logging(app)

    # Ampliar busca de templates: inclui raiz do pacote para paths como
    # 'core/base.html' e 'atestados/gerar.html'.
    from jinja2 import ChoiceLoader, FileSystemLoader

    existing_loader = app.jinja_env.loader
    loaders: list[object] = []
    if existing_loader is not None:
        loaders.append(existing_loader)
    loaders.append(FileSystemLoader(app.root_path))
    app.jinja_env.loader = ChoiceLoader(loaders)  # type: ignore[assignment]

    # Segurança básica de sessão (pode ser ajustada em produção via env)
    app.config.setdefault("SESSION_COOKIE_HTTPONLY", True)
    app.config.setdefault("SESSION_COOKIE_SAMESITE", "Lax")
    if os.environ.get("FLASK_ENV") == "production":  # pragma: no cover
        app.config.setdefault("SESSION_COOKIE_SECURE", True)

    from .atestados.atestados import atestados_bp  # noqa: WPS433
    from .core.core import core_bp  # noqa: WPS433

    from .atestados.state import get_store  # noqa: WPS433

    get_store().configure(
        max_entries=app.config.get("STATE_MAX_ENTRIES", 256),
        ttl=app.config.get("STATE_TTL_SECONDS", 7200),
    )

    app.register_blueprint(core_bp)
    app.register_blueprint(atestados_bp, url_prefix="/atestados")

    @app.route("/health")
    def health():  # pragma: no cover - endpoint trivial
        return {"status": "ok"}

    return app
