import logging
import click

from estate_backend.settings import settings
from .admin import init_db
from .access import scope, pages, roles

@click.group()
def cli():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

cli.add_command(init_db,"init-db")
cli.add_command(scope,"scope")
cli.add_command(pages,"pages")
cli.add_command(roles,"roles")

if __name__ == '__main__':
    cli()
