from __future__ import annotations

import logging

from flask import Flask, jsonify

from .config import Config
from .errors import CapabilityMismatchError, ConnectorError, NotFoundError, PersistenceError, ValidationError
from .extensions import db
from .factory import ConnectorFactory
from . import models  # noqa: F401
from .views.health import health_bp
from .views.instances import instances_bp


def create_app(config_class: type[Config] = Config, connector_factory: ConnectorFactory | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    logging.getLogger(__name__).setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    app.extensions["connector_factory"] = connector_factory or ConnectorFactory(
        timeout=app.config.get("CONNECTOR_TIMEOUT", 60.0)
    )

    app.register_blueprint(health_bp)
    app.register_blueprint(instances_bp)

    @app.errorhandler(NotFoundError)
    def record_not_found(exc: NotFoundError):
        return jsonify({"success": False, "error": str(exc)}), 404

    @app.errorhandler(ValidationError)
    @app.errorhandler(CapabilityMismatchError)
    def bad_request(exc: Exception):
        return jsonify({"success": False, "error": str(exc)}), 400

    @app.errorhandler(PersistenceError)
    def persistence_failed(exc: PersistenceError):
        return jsonify({"success": False, "error": str(exc)}), 500

    @app.errorhandler(ConnectorError)
    def upstream_failed(exc: ConnectorError):
        return jsonify({"success": False, "error": str(exc)}), 502

    @app.errorhandler(404)
    def not_found(_: Exception):
        return jsonify({"success": False, "error": "Not Found"}), 404

    @app.errorhandler(500)
    def internal_error(_: Exception):
        return jsonify({"success": False, "error": "Internal Server Error"}), 500

    return app
