import time

from flask import Flask, g, request
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy.exc import OperationalError

from .config import Config
from .docs import docs_bp
from .errors import register_error_handlers
from .logs import configure_logging, logger
from .metrics import REQUEST_COUNT, REQUEST_DURATION, render_latest
from .model import db
from .products import products_bp
from .users import users_bp

migrate = Migrate()


def create_app(config_object=Config, overrides=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    if not app.config.get('SECRET_KEY'):
        raise RuntimeError("SECRET_KEY must be set to sign tokens")

    configure_logging(app.config['LOG_LEVEL'])

    db.init_app(app)
    migrate.init_app(app, db)
    CORS(app, origins=app.config['CORS_ORIGINS'], expose_headers=['Authorization'])
    register_error_handlers(app)

    app.register_blueprint(users_bp, url_prefix='/users')
    app.register_blueprint(products_bp, url_prefix='/products')
    app.register_blueprint(docs_bp)

    @app.before_request
    def start_timer():
        g.start_time = time.time()

    @app.after_request
    def record_request(response):
        endpoint = request.url_rule.rule if request.url_rule else 'unmatched'
        REQUEST_COUNT.labels(request.method, endpoint, str(response.status_code)).inc()
        if 'start_time' in g:
            REQUEST_DURATION.observe(time.time() - g.start_time)
        return response

    @app.route("/")
    def index():
        return "Hello world", 200

    # health check
    @app.route("/health")
    def health():
        logger.info("Health check", extra={'endpoint': '/health', 'status_code': 200})
        return "OK", 200

    # Prometheus metrics endpoint
    @app.route('/metrics')
    def metrics():
        resp, content_type = render_latest()
        return resp, 200, {'Content-Type': content_type}

    return app


def init_db(app):
    """Create tables, retrying while the database comes up."""
    attempts = max(1, app.config['DB_CONNECT_ATTEMPTS'])
    with app.app_context():
        for attempt in range(1, attempts + 1):
            try:
                db.create_all()
                return
            except OperationalError:
                if attempt == attempts:
                    raise
                logger.warning("Database unavailable, retrying in %s seconds...", app.config['DB_CONNECT_DELAY_SECONDS'])
                time.sleep(app.config['DB_CONNECT_DELAY_SECONDS'])


def shutdown(app):
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    logger.info("Database connections closed", extra={'endpoint': 'shutdown'})


def main():
    app = create_app()
    init_db(app)
    logger.info("Starting catalog api", extra={'endpoint': 'startup'})
    try:
        app.run(host='0.0.0.0', port=app.config['PORT'])
    finally:
        shutdown(app)


if __name__ == "__main__":
    main()
