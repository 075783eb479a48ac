"""Flask extensions initialization."""

from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from celery import Celery

from koopflow.errors import Unauthenticated

db = SQLAlchemy()
login_manager = LoginManager()
celery = Celery('koopflow')


@login_manager.user_loader
def load_user(user_id):
    """Load user by ID for Flask-Login."""
    from koopflow.models.user import User
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    raise Unauthenticated('Not logged in')
