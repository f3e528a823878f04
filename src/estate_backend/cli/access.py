import click
from sqlalchemy.orm import Session

from estate_backend.database import get_db
from estate_backend.permissions.auth import AuthenticatedUser, PrincipalBuilder
from estate_backend.permissions.core import AccessDecisionPoint
from estate_backend.permissions.errors import UnknownResourceType
from estate_backend.permissions.ownership import Unrestricted
from estate_backend.permissions import roles as role_store


def build_decision_point(user_id: int, db: Session) -> AccessDecisionPoint:
    principal = PrincipalBuilder.build(AuthenticatedUser(user_id=user_id), db)
    return AccessDecisionPoint(principal, db)


@click.command()
@click.argument("user_id", type=int)
@click.argument("resource_type")
def scope(user_id, resource_type):
    """Print the ids USER_ID may access for RESOURCE_TYPE"""

    with next(get_db()) as db:
        adp = build_decision_point(user_id, db)
        try:
            result = adp.scope_for(resource_type)
        except UnknownResourceType as e:
            raise click.BadParameter(str(e), param_hint="RESOURCE_TYPE")

        if isinstance(result, Unrestricted):
            click.echo(f"{resource_type}: unrestricted")
        else:
            ids = result.sorted_ids()
            click.echo(f"{resource_type}: {len(ids)} id(s)")
            for resource_id in ids:
                click.echo(f"  {resource_id}")


@click.command()
@click.argument("user_id", type=int)
def pages(user_id):
    """List the sidebar pages USER_ID may view"""

    with next(get_db()) as db:
        adp = build_decision_point(user_id, db)
        for page in adp.list_accessible_pages():
            click.echo(f"{page.display_order:>3}  {page.name:<24} {page.url:<28} {','.join(page.permission_types)}")


@click.command()
@click.argument("user_id", type=int)
def roles(user_id):
    """List the roles of USER_ID and the roles they may hand out"""

    with next(get_db()) as db:
        adp = build_decision_point(user_id, db)

        click.echo("Holds:")
        for role in role_store.user_roles(db, user_id):
            click.echo(f"  {role.id:>4}  {role.name}")

        click.echo("Manages:")
        for role in adp.manageable_roles():
            kind = "system" if role.builtin else "custom"
            click.echo(f"  {role.id:>4}  {role.name} ({kind})")
