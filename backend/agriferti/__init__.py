# backend/agriferti/__init__.py
from flask import Flask, jsonify, request

from .config import Config
from .errors import ServiceError
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Service modules log under "agriferti.*" and propagate to app.logger
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Entity store backend (sql | memory)
    from .services.entity_store import EXTENSION_KEY, build_store
    store = build_store(app.config)
    app.extensions[EXTENSION_KEY] = store

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.customers import customers_bp
    from .routes.sales import sales_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)

    @app.errorhandler(ServiceError)
    def handle_service_error(exc: ServiceError):
        if exc.status_code >= 500:
            app.logger.error("%s %s failed: %s", request.method, request.path, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    # Flask has already logged the traceback
    @app.errorhandler(500)
    def handle_internal_error(exc):
        return jsonify({"error": "Internal server error", "kind": "internal_error"}), 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ORIGINS") or [])
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("HEALTH_POLL_ENABLED") and not app.config.get("TESTING"):
        from .services.health_service import EXTENSION_KEY as MONITOR_KEY, LivenessMonitor
        monitor = LivenessMonitor(app, store, interval=app.config["HEALTH_POLL_INTERVAL_SECONDS"])
        app.extensions[MONITOR_KEY] = monitor
        monitor.start()

    return app
