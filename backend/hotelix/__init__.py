from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from datetime import timedelta
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def load_config() -> Dict[str, Any]:
    """Defaults read from the environment.

    ``JWT_ACCESS_TOKEN_EXPIRES`` is given in hours in the environment.
    """
    return {
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'JWT_ACCESS_TOKEN_EXPIRES': timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', '12'))),
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///hotelix.db'),
        'STATS_CACHE_TTL_SECONDS': int(os.getenv('STATS_CACHE_TTL_SECONDS', '60')),
        'STATS_CACHE_MAX_SIZE': int(os.getenv('STATS_CACHE_MAX_SIZE', '100')),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO'),
    }


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)
    app.config.update(load_config())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .cache.intervention_cache import intervention_cache
    intervention_cache.init_app(app)

    from .routes.auth import auth_bp
    from .routes.hotels import hotels_bp
    from .routes.interventions import int_bp
    from .routes.technicians import tech_bp
    from .routes.stats import stats_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(hotels_bp)  # /hotels and /zones
    app.register_blueprint(int_bp, url_prefix='/interventions')
    app.register_blueprint(tech_bp, url_prefix='/technicians')
    app.register_blueprint(stats_bp, url_prefix='/stats')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            # Domain errors (see hotelix.errors) carry a machine code and field messages
            code = getattr(e, 'error_code', None)
            if code:
                payload['error']['code'] = code
            fields = getattr(e, 'fields', None)
            if fields:
                payload['error']['fields'] = fields
            return payload, e.code
        app.logger.exception('Unhandled exception')
        if SessionLocal is not None:
            SessionLocal.rollback()
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    from .openapi import build_openapi_spec

    @app.route('/openapi.json')
    def openapi_spec():
        return build_openapi_spec()

    @app.route('/docs')
    def docs_index():
        return (
            "<!DOCTYPE html><html><head><title>Hotelix API</title>"
            "<link rel=\"stylesheet\" href=\"https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.css\" />"
            "</head><body><redoc spec-url='/openapi.json'></redoc>"
            "<script src='https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.js'></script>"
            "</body></html>"
        )

    return app


def get_db():
    return SessionLocal()
