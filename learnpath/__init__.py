from flask import Flask
from .config import Config
from .extensions import db, migrate, jwt
from .errors import register_error_handlers
from .services.paystack import PaystackClient
from .routes import auth, courses, enrollments, progress, reviews, analytics, payment
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix


def create_app(config_class=Config):
    app = Flask(__name__)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)
    app.config.from_object(config_class)

    # Paystack is required for paid enrollment; refuse to start without it
    if not app.config.get("PAYSTACK_SECRET_KEY"):
        raise RuntimeError("Missing required Paystack secret: PAYSTACK_SECRET_KEY")

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    app.extensions["paystack"] = PaystackClient(
        app.config["PAYSTACK_SECRET_KEY"],
        base_url=app.config.get("PAYSTACK_BASE_URL", "https://api.paystack.co"),
        timeout=app.config.get("PAYSTACK_TIMEOUT", 10),
    )

    register_error_handlers(app)

    # Register blueprints
    app.register_blueprint(auth.bp, url_prefix="/api/auth")
    app.register_blueprint(courses.bp, url_prefix="/api")
    app.register_blueprint(enrollments.bp, url_prefix="/api")
    app.register_blueprint(progress.bp, url_prefix="/api")
    app.register_blueprint(reviews.bp, url_prefix="/api")
    app.register_blueprint(analytics.bp, url_prefix="/api/analytics")
    app.register_blueprint(payment.bp, url_prefix="/api")

    return app
