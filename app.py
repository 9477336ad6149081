import os
from flask import Flask, jsonify, request, redirect, url_for
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from extensions import db, init_extensions, login_manager
from logger import configure_app_logging
from models import User
from workflows.errors import WorkflowError


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    if app.config.get("DEBUG", False):
        app.config['TEMPLATES_AUTO_RELOAD'] = True
        app.jinja_env.auto_reload = True
        app.config['SEND_FILE_MAX_AGE_DEFAULT'] = 0
    elif not app.config.get("TESTING", False):
        app.config.update(
            SESSION_COOKIE_SECURE=True,
            SESSION_COOKIE_HTTPONLY=True,
            REMEMBER_COOKIE_SECURE=True,
            REMEMBER_COOKIE_HTTPONLY=True,
        )

    # ------------------------------------------------------------------------------------------
    # LOGGING
    # ------------------------------------------------------------------------------------------
    configure_app_logging(app)

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///"):
        os.makedirs(os.path.join(app.root_path, "instance"), exist_ok=True)

    # --------------------------------------------------------------------------------------------------------------------------
    # Initialize extensions
    # ----------------------------------------------------------------------------------------------------------------------------
    init_extensions(app)

    # ------------------------------------------------------------------------------------------------------------------------
    # Register blueprints
    # -----------------------------------------------------------------------------------------------------------------------
    def register_blueprints(app):
        from blueprints.auth import bp as auth_bp
        from blueprints.pages import pages_bp
        from blueprints.onboarding import onboarding_bp
        from blueprints.investments import investments_bp
        from blueprints.payments import payments_bp
        from blueprints.withdrawals import withdrawals_bp
        from blueprints.visits import visits_bp
        from blueprints.farmers import farmers_bp
        from blueprints.admin import admin_bp
        from blueprints.admin_farmers import farmers_admin_bp
        from blueprints.admin_reviews import reviews_bp
        from blueprints.admin_catalog import catalog_bp
        from blueprints.notifications import notifications_bp

        app.register_blueprint(auth_bp)
        app.register_blueprint(pages_bp)
        app.register_blueprint(onboarding_bp)
        app.register_blueprint(investments_bp)
        app.register_blueprint(payments_bp)
        app.register_blueprint(withdrawals_bp)
        app.register_blueprint(visits_bp)
        app.register_blueprint(farmers_bp)
        app.register_blueprint(admin_bp)
        app.register_blueprint(farmers_admin_bp)
        app.register_blueprint(reviews_bp)
        app.register_blueprint(catalog_bp)
        app.register_blueprint(notifications_bp)

    register_blueprints(app)

    # ------------------------------------------------------------------------------------------------------------------------
    # Flask-Login hooks
    # ------------------------------------------------------------------------------------------------------------------------
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        if request.path.startswith("/api/"):
            return jsonify({"error": "Authentication required"}), 401
        return redirect(url_for("pages.login", next=request.path))

    # ----------------------
    # Error handlers
    # ----------------------
    @app.errorhandler(WorkflowError)
    def handle_workflow_error(e):
        db.session.rollback()
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        db.session.rollback()
        app.logger.error(f"Database error on {request.path}: {e}")
        return jsonify({"error": str(e)}), 500

    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "Not found"}), 404
        return e

    @app.route("/healthz")
    def healthz():
        return {"status": "ok"}, 200

    return app


# ----------------------
# Local development
# ----------------------
if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(debug=app.config.get("DEBUG", True), host="0.0.0.0", port=port)
