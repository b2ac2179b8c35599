from flask import Blueprint, redirect, url_for

core_bp = Blueprint(
    "core",
    __name__,
    template_folder=".",
)


@core_bp.route("/")
def index():
    # página única: o gerador de atestado
    return redirect(url_for("atestados.index"))
