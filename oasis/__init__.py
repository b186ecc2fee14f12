import logging
import os
from flask import Flask, redirect, url_for
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from dotenv import load_dotenv

db = SQLAlchemy()
login_manager = LoginManager()

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def _configure_logging(level_name: str):
    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    logger = logging.getLogger("oasis")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)


def create_app(test_config=None):
    load_dotenv()

    app = Flask(
        __name__,
        template_folder="../templates",
    )

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", "sqlite:///oasis.sqlite3")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # payments (Razorpay keys are only needed for the online path)
    app.config["RAZORPAY_KEY_ID"] = os.getenv("RAZORPAY_KEY_ID")
    app.config["RAZORPAY_KEY_SECRET"] = os.getenv("RAZORPAY_KEY_SECRET")
    app.config["PAYMENT_CURRENCY"] = os.getenv("PAYMENT_CURRENCY", "INR")
    app.config["BUSINESS_NAME"] = os.getenv("BUSINESS_NAME", "The Wild Oasis")

    # booking confirmation mail
    app.config["SENDGRID_API_KEY"] = os.getenv("SENDGRID_API_KEY")
    app.config["MAIL_FROM"] = os.getenv("MAIL_FROM", "noreply@wildoasis.com")

    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")

    if test_config:
        app.config.update(test_config)

    _configure_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"

    @app.route("/")
    def home():
        return redirect(url_for("cabins.cabin_list"))

    # register blueprints
    from .auth import auth_bp
    app.register_blueprint(auth_bp)

    from .cabins import cabins_bp
    app.register_blueprint(cabins_bp)

    from .payments import payments_bp
    app.register_blueprint(payments_bp)

    # create tables
    with app.app_context():
        from . import models
        db.create_all()

    return app
