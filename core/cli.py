"""
Command-line interface for CarLeads
"""
import click

from core.config import settings
from core.logging import get_logger
from database.models import User, UserRole
from database.session import init_db, session_scope

logger = get_logger(__name__)


@click.group()
@click.version_option(version=settings.app_version)
def cli():
    """CarLeads CLI - car lead management platform"""
    pass


@cli.command("init-db")
def init_db_command():
    """Initialize database with tables"""
    click.echo("Creating database tables...")
    init_db()
    click.echo("Database initialized successfully!")


@cli.command()
@click.option("--email", default=None, help="Superadmin email (defaults to ADMIN_EMAIL)")
@click.option("--password", default=None, help="Superadmin password (defaults to ADMIN_PASSWORD)")
def seed(email, password):
    """Create the first superadmin and the default system settings"""
    from account_management.repository import UserRepository
    from system_settings.repository import SettingsRepository

    email = email or settings.admin_email
    if password is None and settings.admin_password is not None:
        password = settings.admin_password.get_secret_value()

    init_db()

    with session_scope() as db:
        added = SettingsRepository(db).seed_defaults()
        click.echo(f"Seeded {len(added)} default settings")

        if db.query(User).filter(User.role == UserRole.SUPERADMIN).first():
            click.echo("Superadmin already exists, skipping")
            return

        if not email or not password:
            raise click.UsageError("ADMIN_EMAIL and ADMIN_PASSWORD are required to create the superadmin")

        user = UserRepository(db).create_user(email, UserRole.SUPERADMIN, password=password)
        logger.info(f"Seeded superadmin user_id={user.id}")
        click.echo(f"Created superadmin {user.email}")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def runserver(host: str, port: int, reload: bool):
    """Run the FastAPI development server"""
    import uvicorn

    click.echo(f"Starting CarLeads server on {host}:{port}")
    click.echo(f"Environment: {settings.environment}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
