from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv
import json
import os
from lounge.extensions import db, migrate
from lounge.utils.timer_utils import DEFAULT_PRICE_PER_HOUR, DEFAULT_STATIONS, TIMER_PRICING
import logging

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "t", "yes"]


def create_app(config=None):
    app = Flask(__name__)

    # Configure logging
    logging.basicConfig(level=logging.INFO)
    app.logger.setLevel(logging.INFO)

    # Configure database
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", "sqlite:///lounge.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["AUTO_CREATE_TABLES"] = _env_flag("AUTO_CREATE_TABLES", "true")

    # Timer engine
    app.config["TIMER_TICK_INTERVAL"] = float(os.getenv("TIMER_TICK_INTERVAL", 0.25))
    app.config["TIMER_SYNC_INTERVAL"] = float(os.getenv("TIMER_SYNC_INTERVAL", 5))
    app.config["TIMER_TICKER_ENABLED"] = _env_flag("TIMER_TICKER_ENABLED", "true")
    app.config["PERSISTENCE_ASYNC"] = _env_flag("PERSISTENCE_ASYNC", "true")
    app.config["ACTIVITY_LOG_LIMIT"] = int(os.getenv("ACTIVITY_LOG_LIMIT", 500))
    app.config["LOUNGE_TIMEZONE"] = os.getenv("LOUNGE_TIMEZONE", "Asia/Manila")
    app.config["DAY_BOUNDARY_HOUR"] = int(os.getenv("DAY_BOUNDARY_HOUR", 5))
    app.config["LOUNGE_STATIONS"] = DEFAULT_STATIONS
    app.config["TIMER_PRICING"] = (
        json.loads(os.environ["TIMER_PRICING"]) if os.getenv("TIMER_PRICING") else dict(TIMER_PRICING)
    )
    app.config["DEFAULT_PRICE_PER_HOUR"] = int(os.getenv("DEFAULT_PRICE_PER_HOUR", DEFAULT_PRICE_PER_HOUR))

    if config:
        app.config.update(config)

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Register models with SQLAlchemy metadata
    import lounge.models  # noqa: F401

    # Register blueprints
    from lounge.routes.timer_routes import timer_bp
    from lounge.routes.stats_routes import stats_bp
    from lounge.routes.stream_routes import stream_bp

    app.register_blueprint(timer_bp, url_prefix="/api")
    app.register_blueprint(stats_bp, url_prefix="/api")
    app.register_blueprint(stream_bp, url_prefix="/api")

    # Set up CORS
    cors_origins = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
    ).split(",")
    app.logger.info(f"Initializing CORS with origins: {cors_origins}")
    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

    from lounge.services.bootstrap import init_timer_engine

    init_timer_engine(app, clock=app.config.get("TIMER_CLOCK"))

    return app
