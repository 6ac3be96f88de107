from __future__ import annotations
from flask import Blueprint

# login do funcionário, verificação de e-mail e reset de senha
auth_bp = Blueprint("auth", __name__)

# Importa as rotas (necessário para registrá-las de fato)
from . import routes  # noqa: E402,F401
