# mazao/__init__.py (app factory)

from __future__ import annotations

from typing import Any, Mapping, Optional

from flask import Flask, request
from flask_cors import CORS

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def create_app(config: Optional[Mapping[str, Any]] = None, store=None) -> Flask:
    """
    Build the API.

    `store` is the Mongo handle; the process entry point passes nothing and
    one is connected from config, tests pass a mock-backed Store.
    """
    from mazao.app_config import load_config
    from mazao.errors import register_error_handlers
    from mazao.identity import init_jwt
    from mazao.mongo import STORE_KEY, Store
    from mazao.register_blueprints import register_all_blueprints
    from mazao.seed import seed_admin_command
    from mazao.services.auth_service import bcrypt

    app = Flask(__name__)

    # -------------------------
    # Config & security
    # -------------------------
    load_config(app, config)
    app.url_map.strict_slashes = False

    CORS(
        app,
        resources={r"/api/*": {"origins": [app.config["FRONTEND_URL"]]}},
        supports_credentials=True,
    )
    bcrypt.init_app(app)
    init_jwt(app)

    # -------------------------
    # Mongo
    # -------------------------
    if store is None:
        store = Store.connect(app)
    app.extensions[STORE_KEY] = store

    # -------------------------
    # Errors, headers, request log
    # -------------------------
    register_error_handlers(app)

    @app.after_request
    def _security_headers(response):
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    if app.config["APP_ENV"] == "development":
        @app.after_request
        def _request_log(response):
            app.logger.info("%s %s %s", request.method, request.path, response.status_code)
            return response

    # -------------------------
    # Blueprints / CLI
    # -------------------------
    register_all_blueprints(app)
    app.cli.add_command(seed_admin_command)

    return app
