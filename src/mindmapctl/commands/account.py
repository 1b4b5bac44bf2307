"""Command group: account registration, login and password reset."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from mindmapctl.commands._base import MindmapGroup
from mindmapctl.services.access import AccessService

if TYPE_CHECKING:
    from mindmapctl.commands._context import AppContext

_ACCOUNT_EXAMPLES = """\
  mindmapctl account register --email ada@example.com --display-name "Ada Lovelace"
  mindmapctl account login --email ada@example.com
  mindmapctl account forgot --email ada@example.com
  mindmapctl account reset --email ada@example.com --code 123456"""


@click.group(cls=MindmapGroup, examples=_ACCOUNT_EXAMPLES)
@click.pass_obj
def account(app: AppContext) -> None:
    """Register, sign in and recover accounts."""


def _password_option(name: str, prompt: str, *, envvar: str | None = None):
    return click.option(
        name,
        prompt=prompt,
        hide_input=True,
        envvar=envvar,
        show_envvar=envvar is not None,
        help=f"{prompt} (prompted when omitted).",
    )


@account.command(
    examples="""\
  mindmapctl account register --email ada@example.com
  mindmapctl account register --email ada@example.com --display-name "Ada Lovelace"
  mindmapctl --json account register --email ada@example.com --password ... --confirm ..."""
)
@click.option("--email", prompt="Email", help="Account email.")
@click.option("--display-name", default=None, help="Name shown in document titles.")
@_password_option("--password", "Password", envvar="MINDMAPCTL_PASSWORD")
@_password_option("--confirm", "Confirm password")
@click.pass_obj
def register(
    app: AppContext,
    email: str,
    display_name: str | None,
    password: str,
    confirm: str,
) -> None:
    """Create a new account."""
    service = AccessService(app.workspace)
    app.emit(
        app.run("register", lambda: service.register(email, password, confirm, display_name))
    )


@account.command(
    examples="""\
  mindmapctl account login --email ada@example.com
  MINDMAPCTL_PASSWORD=... mindmapctl --json account login --email ada@example.com"""
)
@click.option("--email", prompt="Email", help="Account email.")
@_password_option("--password", "Password", envvar="MINDMAPCTL_PASSWORD")
@click.pass_obj
def login(app: AppContext, email: str, password: str) -> None:
    """Check credentials and show the account."""
    service = AccessService(app.workspace)
    app.emit(app.run("login", lambda: service.login(email, password)))


@account.command(
    examples="""\
  mindmapctl account forgot --email ada@example.com"""
)
@click.option("--email", prompt="Email", help="Account email.")
@click.pass_obj
def forgot(app: AppContext, email: str) -> None:
    """Send a one-time reset code to the account's email."""
    service = AccessService(app.workspace)
    app.emit(app.run("send_reset_code", lambda: service.send_reset_code(email)))


@account.command(
    examples="""\
  mindmapctl account reset --email ada@example.com --code 123456"""
)
@click.option("--email", prompt="Email", help="Account email.")
@click.option("--code", prompt="Reset code", help="The code from the reset email.")
@_password_option("--password", "New password")
@_password_option("--confirm", "Confirm password")
@click.pass_obj
def reset(app: AppContext, email: str, code: str, password: str, confirm: str) -> None:
    """Set a new password using a reset code."""
    service = AccessService(app.workspace)
    app.emit(
        app.run("reset_password", lambda: service.reset_password(email, code, password, confirm))
    )
