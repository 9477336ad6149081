from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_cors import CORS


db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
cors = CORS()

NOTIFICATION_CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def init_extensions(app):
    """Initialize Flask extensions"""
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    login_manager.login_view = "pages.login"
    login_manager.login_message_category = "info"
    cors.init_app(app, resources={
        r"/functions/*": {"origins": "*", "allow_headers": NOTIFICATION_CORS_HEADERS},
    })

    return app
