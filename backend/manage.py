import click
from flask.cli import with_appcontext
from flask_migrate import upgrade, migrate, init
from school_admin import create_app
from school_admin.models import User
from school_admin.seed import seed_data

app = create_app()

@app.cli.command("db-init")
@with_appcontext
def db_init():
    """Initializes migrations directory"""
    init()

@app.cli.command("db-migrate")
@with_appcontext
def db_migrate():
    """Creates a new migration"""
    migrate()

@app.cli.command("db-upgrade")
@with_appcontext
def db_upgrade():
    """Applies migrations"""
    upgrade()

@app.cli.command("seed")
@with_appcontext
def seed():
    """Loads demo users, staff, school year, section, courses and schedules"""
    if User.query.first() is not None:
        click.echo("Database already has users; skipping seed.")
        return
    seed_data()
    click.echo("Demo data loaded.")
