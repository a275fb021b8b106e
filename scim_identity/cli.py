"""
Manual SCIM client CLI.

Exercises the SCIM client against a live identity provider:

\b
  scim-client --action GetUser --host https://idp.example.com/scim \\
      --client-id plugin --client-secret s3cret --id <user id>
  scim-client --action ListGroups --host https://idp.example.com/scim \\
      --client-id plugin --cert-path client.pem --key-path client.key \\
      --use-http-post --display-name KeyAdmin
"""

import logging
from typing import Optional

import click

from .errors import ConfigurationError, SCIMClientError
from .handlers.auth import credentials_from_params
from .models.filters import NULL_FILTER, FilterComparison, FilterExpression, FilterOperator
from .services.scim_client import SCIMClient

ACTIONS = ["GetUser", "ListUsers", "GetGroup", "ListGroups"]

DEFAULT_COUNT = 100


def display_name_filter(display_name: Optional[str]) -> FilterExpression:
    if not display_name:
        return NULL_FILTER
    return FilterComparison(attribute="displayName", operator=FilterOperator.EQUAL, value=display_name)


@click.command()
@click.option("--action", required=True, type=click.Choice(ACTIONS), help="Action to perform")
@click.option("--host", required=True, help="SCIM server host")
@click.option("--client-id", required=True, help="Client ID for authentication")
@click.option("--client-secret", default="", help="Client secret (secret auth)")
@click.option("--cert-path", default="", type=click.Path(), help="Client certificate file (certificate auth)")
@click.option("--key-path", default="", type=click.Path(), help="Client private key file (certificate auth)")
@click.option("--use-http-post", is_flag=True, help="List with POST to /.search instead of GET")
@click.option("--id", "resource_id", default="", help="ID of the user or group to retrieve")
@click.option("--cursor", default=None, help="Cursor for pagination")
@click.option("--count", default=DEFAULT_COUNT, show_default=True, type=int, help="Page size")
@click.option("--display-name", default=None, help="Filter users/groups by displayName")
@click.option("--log-level", default="INFO", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def main(action, host, client_id, client_secret, cert_path, key_path, use_http_post,
         resource_id, cursor, count, display_name, log_level):
    """Send GetUser, ListUsers, GetGroup or ListGroups requests to a SCIM server."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        credentials = credentials_from_params(
            client_id,
            client_secret=client_secret,
            cert_file=cert_path,
            key_file=key_path,
        )
        client = SCIMClient(host, credentials)
    except ConfigurationError as e:
        raise click.ClickException(f"Error creating SCIM client: {e}")

    try:
        if action == "GetUser":
            if not resource_id:
                raise click.UsageError("--id is required for GetUser")
            user = client.get_user(resource_id)
            click.echo(f"Found User: {user.userName}")

        elif action == "ListUsers":
            users = client.list_users(use_http_post, display_name_filter(display_name), cursor=cursor, count=count)
            click.echo("Found Users:")
            for user in users.Resources:
                click.echo(user.userName)

        elif action == "GetGroup":
            if not resource_id:
                raise click.UsageError("--id is required for GetGroup")
            group = client.get_group(resource_id)
            click.echo(f"Found Group: {group.displayName}")

        else:
            groups = client.list_groups(use_http_post, display_name_filter(display_name), cursor=cursor, count=count)
            click.echo("Found Groups:")
            for group in groups.Resources:
                click.echo(group.displayName)

    except SCIMClientError as e:
        raise click.ClickException(str(e))
    finally:
        client.close()


if __name__ == "__main__":
    main()
