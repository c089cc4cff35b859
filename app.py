import logging
import os

import sentry_sdk
from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sentry_sdk.integrations.flask import FlaskIntegration

from analysis import AnalysisSession
from routes import register_routes

logger = logging.getLogger(__name__)


def _configure_logging():
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _configure_sentry():
    if "SENTRY_DSN" in os.environ:
        sentry_sdk.init(
            dsn=os.environ["SENTRY_DSN"],
            integrations=[FlaskIntegration()],
            traces_sample_rate=1.0,
        )


def create_app(config=None):
    _configure_logging()
    _configure_sentry()

    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev")
    app.config["RATELIMIT_STORAGE_URI"] = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    if config:
        app.config.update(config)

    limiter = Limiter(
        get_remote_address,
        app=app,
        storage_uri=app.config["RATELIMIT_STORAGE_URI"],
    )
    # Flask-Limiter only keeps a weak reference to itself on the app.
    app.limiter = limiter

    app.extensions["analysis_session"] = app.config.get("ANALYSIS_SESSION") or AnalysisSession()
    register_routes(app, limiter)

    logger.info("Channel analyzer ready.")
    return app


if __name__ == "__main__":
    create_app().run(debug=True)
