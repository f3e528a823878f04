import click

from estate_backend.database import get_db, get_engine
from estate_backend.model import Base
from estate_backend.permissions.catalog import seed_access_catalog


@click.command()
@click.option("--no-seed", is_flag=True, default=False, help="Only create tables")
def init_db(no_seed):
    """Create all tables and seed permissions, pages and system roles"""

    Base.metadata.create_all(get_engine())
    click.echo("Tables created")

    if no_seed:
        return

    with next(get_db()) as db:
        seed_access_catalog(db)
    click.echo("Access catalog seeded")
