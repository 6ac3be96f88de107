from __future__ import annotations
from flask import Blueprint

# área do funcionário: tarefas, presença, trocas de turno, alertas
portal_bp = Blueprint("portal", __name__)

from . import routes  # noqa: E402,F401
