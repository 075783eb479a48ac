import click
from flask.cli import with_appcontext

from koopflow.extensions import db


@click.command('init-db')
@with_appcontext
def init_db():
    """Create all database tables."""
    import koopflow.models  # noqa: F401  (registers the models)

    db.create_all()
    click.echo('Database tables created.')


def init_app(app):
    """Register CLI commands"""
    app.cli.add_command(init_db)
