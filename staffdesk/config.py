# staffdesk/config.py
import os
from dotenv import load_dotenv

load_dotenv()  # carrega variáveis do .env

DEFAULT_BACKEND_API_BASE = "http://localhost:5000"


class Config:
    # --- Flask ---
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- Backend REST API ---
    BACKEND_API_BASE = os.getenv("BACKEND_API_BASE", DEFAULT_BACKEND_API_BASE)
    BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "45"))
    BACKEND_MAX_RETRIES = int(os.getenv("BACKEND_MAX_RETRIES", "3"))

    # pausa entre chamadas sequenciais do dashboard (backend pode estar acordando)
    DASHBOARD_CALL_SPACING = float(os.getenv("DASHBOARD_CALL_SPACING", "0.5"))

    # aviso de "sessão expira em breve"
    SESSION_WARN_SECONDS = int(os.getenv("SESSION_WARN_SECONDS", "1800"))
