# cargo_erp/__init__.py

import atexit

from flask import Flask
from .config import Config
from .extensions import db, migrate


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Inicializar extensiones
    db.init_app(app)
    migrate.init_app(app, db)

    from . import models  # noqa: F401  (registra ErpState para Flask-Migrate)

    # Estado explícito de la app (ledger, store, sync, settings)
    from .services.runtime import init_runtime
    runtime = init_runtime(app)
    atexit.register(runtime.shutdown)

    # Registrar blueprints
    from .blueprints.api.routes import api_bp
    from .blueprints.health.routes import health_bp

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(health_bp, url_prefix="/health")

    return app
