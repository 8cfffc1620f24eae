# cargo_erp/config.py

import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

    # PostgreSQL (Neon / Render / local)
    # Algunos proveedores entregan DATABASE_URL como postgres:// (deprecated)
    uri = os.getenv("DATABASE_URL", "postgresql://localhost/cargo_erp")
    if uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)

    # Forzar driver pg8000
    # Si ya viene con driver, no lo tocamos
    if uri.startswith("postgresql://") and "+pg8000" not in uri:
        uri = uri.replace("postgresql://", "postgresql+pg8000://", 1)

    SQLALCHEMY_DATABASE_URI = uri
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sin remoto: todo queda en el respaldo local (estado Offline)
    REMOTE_SYNC_ENABLED = _env_flag("REMOTE_SYNC_ENABLED", "1")

    # Rutas de archivos
    LOCAL_CACHE_PATH = os.getenv("LOCAL_CACHE_PATH", os.path.join("data", "erp_state.json"))
    SETTINGS_PATH = os.getenv("SETTINGS_PATH", os.path.join("data", "settings.json"))
    OUTPUT_FOLDER = os.getenv("OUTPUT_FOLDER", "outputs")

    # Guardado diferido
    SYNC_DEBOUNCE_SECONDS = float(os.getenv("SYNC_DEBOUNCE_SECONDS", "1.5"))

    # Tolerancias (kg)
    STATUS_TOLERANCE_KG = float(os.getenv("STATUS_TOLERANCE_KG", "0.5"))
    MANIFEST_TOLERANCE_KG = float(os.getenv("MANIFEST_TOLERANCE_KG", "0.1"))
