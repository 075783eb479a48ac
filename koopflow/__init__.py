"""Flask application factory."""

from flask import Flask, jsonify, has_app_context
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from koopflow.config import Config
from koopflow.errors import KoopflowError
from koopflow.extensions import db, login_manager, celery


def register_error_handlers(app):
    """Render every error as {"error": ..., "kind": ...}."""

    @app.errorhandler(KoopflowError)
    def handle_koopflow_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({'error': e.description, 'kind': e.name.replace(' ', '')}), e.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        app.logger.error(f"Database error: {e}")
        return jsonify({'error': 'Internal server error', 'kind': 'InternalError'}), 500


def create_app(config_class=Config):
    """Create and configure Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    # Configure Celery
    celery.conf.update(
        broker_url=app.config['CELERY_BROKER_URL'],
        result_backend=app.config['CELERY_RESULT_BACKEND'],
        task_serializer=app.config['CELERY_TASK_SERIALIZER'],
        result_serializer=app.config['CELERY_RESULT_SERIALIZER'],
        accept_content=app.config['CELERY_ACCEPT_CONTENT'],
        timezone=app.config['CELERY_TIMEZONE'],
        enable_utc=app.config['CELERY_ENABLE_UTC'],
        task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
    )

    # Celery context task to work with Flask app context.
    # Direct calls from inside an app context (tests, CLI) reuse that context.
    class ContextTask(celery.Task):
        def __call__(self, *args, **kwargs):
            if has_app_context():
                return self.run(*args, **kwargs)
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask

    register_error_handlers(app)

    # Register blueprints
    from koopflow.auth.routes import auth_bp
    from koopflow.organization.routes import organization_bp
    from koopflow.admin.routes import admin_bp
    from koopflow.documents.routes import documents_bp
    from koopflow.instructions.routes import instructions_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(organization_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(instructions_bp)

    from koopflow import cli
    cli.init_app(app)

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'ok'}, 200

    return app
