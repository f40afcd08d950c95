"""
Centralized Blueprint Registration
All blueprints MUST be registered inside register_all_blueprints(app)
"""


def register_all_blueprints(app):

    # Root
    from mazao.routes.root.root_routes import root_bp
    app.register_blueprint(root_bp)

    # Auth
    from mazao.routes.auth.auth_routes import auth_bp
    app.register_blueprint(auth_bp)

    # Farmer-facing modules
    from mazao.routes.farmer.crop_routes import crop_bp
    from mazao.routes.farmer.profile_routes import profile_bp
    app.register_blueprint(crop_bp)
    app.register_blueprint(profile_bp)

    # Admin modules
    from mazao.routes.admin.user_routes import user_bp
    from mazao.routes.admin.dashboard_routes import dashboard_bp
    app.register_blueprint(user_bp)
    app.register_blueprint(dashboard_bp)

    app.logger.debug("All blueprints registered")
