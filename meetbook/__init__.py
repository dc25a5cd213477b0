import logging

from flask import Flask
from meetbook.config import DevelopmentConfig
from meetbook.errors import register_error_handlers
from meetbook.extensions import db, migrate
from meetbook.services.document_store import create_store

def create_app(config_class=DevelopmentConfig, store=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    app.logger.setLevel(app.config['LOG_LEVEL'])
    logging.getLogger('meetbook').setLevel(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Injected store handle; tests pass their own
    app.extensions['document_store'] = store or create_store(app.config, session=db.session)

    register_error_handlers(app)

    # Register Blueprints
    from meetbook.api.routes.admin import admin_bp
    from meetbook.api.routes.bookings import bookings_bp
    from meetbook.api.routes.meetings import meetings_bp

    app.register_blueprint(meetings_bp, url_prefix='/api/meetings')
    app.register_blueprint(bookings_bp, url_prefix='/api/bookings')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    @app.after_request
    def add_cors_headers(response):
        response.headers['Access-Control-Allow-Origin'] = app.config['CORS_ALLOW_ORIGIN']
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, DELETE, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization, X-Admin-Password'
        return response

    @app.route('/health')
    def health():
        return {"status": "ok", "app": "meetbook"}

    return app
