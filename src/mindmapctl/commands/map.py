"""Command group: view and edit the current mindmap document.

Every command signs in with ``--email``/``--password``, opens the account's
current document (or ``--document``), applies one edit and closes the
session, which saves any pending change.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import IO, TYPE_CHECKING, Any

import click

from mindmapctl.commands._base import MindmapGroup
from mindmapctl.domain.graph import FONT_FAMILIES, NodeShape
from mindmapctl.services.documents import DocumentStore
from mindmapctl.services.result import ServiceResult

if TYPE_CHECKING:
    from mindmapctl.commands._context import AppContext
    from mindmapctl.domain.accounts import Account
    from mindmapctl.services.editor import EditorSession

_MAP_EXAMPLES = """\
  mindmapctl map show --email ada@example.com
  mindmapctl map add-node "Engines" --description "Analytical and difference"
  mindmapctl map connect "Idea 1" Engines
  mindmapctl map search engine
  mindmapctl map import outline.json
  mindmapctl --json map list"""

_SHAPES = [s.value for s in NodeShape]


def _document_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--document",
        default=None,
        help="Document id or id prefix (default: most recently updated).",
    )(func)


def _auth_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the sign-in options to a map command."""
    func = click.option(
        "--password",
        prompt="Password",
        hide_input=True,
        envvar="MINDMAPCTL_PASSWORD",
        show_envvar=True,
        help="Account password (prompted when omitted).",
    )(func)
    func = click.option(
        "--email",
        prompt="Email",
        envvar="MINDMAPCTL_ACCOUNT_EMAIL",
        show_envvar=True,
        help="Account email.",
    )(func)
    return func


def _parse_dash(value: str | None) -> list[float] | None:
    if value is None:
        return None
    if not value.strip():
        return []
    try:
        return [float(part) for part in value.split(",")]
    except ValueError as exc:
        msg = f"Dash pattern must be comma-separated numbers, got {value!r}"
        raise click.BadParameter(msg, param_hint="--dash") from exc


@click.group("map", cls=MindmapGroup, examples=_MAP_EXAMPLES)
@click.pass_obj
def map_group(app: AppContext) -> None:
    """View and edit your mindmap."""


@map_group.command(
    examples="""\
  mindmapctl map show --email ada@example.com
  mindmapctl --json map show --document 3f2a"""
)
@_document_option
@_auth_options
@click.pass_obj
def show(app: AppContext, email: str, password: str, document: str | None) -> None:
    """Show the current document's nodes and connections."""
    app.emit(app.run_editor("open", email, password, document=document))


@map_group.command(
    "list",
    examples="""\
  mindmapctl map list --email ada@example.com
  mindmapctl -q map list""",
)
@_auth_options
@click.pass_obj
def list_documents(app: AppContext, email: str, password: str) -> None:
    """List your documents, newest first."""

    async def action(account: Account) -> ServiceResult:
        summaries = await DocumentStore(app.workspace).list_for_owner(account.id)
        items = [s.model_dump(mode="json") for s in summaries]
        return ServiceResult(
            ok=True, op="list_documents", data={"items": items, "count": len(items)}
        )

    app.emit(app.run_as("list_documents", email, password, action))


@map_group.command(
    "add-node",
    examples="""\
  mindmapctl map add-node
  mindmapctl map add-node "Engines" --description "Analytical and difference"
  mindmapctl map add-node "Notes" --color "#FCE4EC" --shape Ellipse --tag history""",
)
@click.argument("title", required=False)
@click.option("--description", default=None, help="Longer text shown under the title.")
@click.option("--x", type=float, default=None, help="Horizontal position.")
@click.option("--y", type=float, default=None, help="Vertical position.")
@click.option("--color", default=None, help="Background color (#RGB, #RRGGBB or #AARRGGBB).")
@click.option("--shape", type=click.Choice(_SHAPES, case_sensitive=False), default=None)
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@_document_option
@_auth_options
@click.pass_obj
def add_node(
    app: AppContext,
    title: str | None,
    description: str | None,
    x: float | None,
    y: float | None,
    color: str | None,
    shape: str | None,
    tags: tuple[str, ...],
    email: str,
    password: str,
    document: str | None,
) -> None:
    """Add a node (default title "Idea N")."""

    async def action(session: EditorSession) -> ServiceResult:
        return session.add_node(
            title, description=description, x=x, y=y, color=color, shape=shape, tags=tags
        )

    app.emit(app.run_editor("add_node", email, password, action, document=document))


@map_group.command(
    "update-node",
    examples="""\
  mindmapctl map update-node 3f2a --title "Difference engine"
  mindmapctl map update-node Engines --color "#E8F5E9" --x 400 --y 120""",
)
@click.argument("node")
@click.option("--title", default=None)
@click.option("--description", default=None)
@click.option("--x", type=float, default=None)
@click.option("--y", type=float, default=None)
@click.option("--width", type=float, default=None)
@click.option("--height", type=float, default=None)
@click.option("--color", default=None, help="Background color; the border follows it.")
@click.option("--text-color", default=None)
@click.option("--shape", type=click.Choice(_SHAPES, case_sensitive=False), default=None)
@click.option("--font-size", type=float, default=None)
@click.option("--font-family", type=click.Choice(FONT_FAMILIES, case_sensitive=False), default=None)
@click.option("--tag", "tags", multiple=True, help="Replace the tags (repeatable).")
@_document_option
@_auth_options
@click.pass_obj
def update_node(
    app: AppContext,
    node: str,
    tags: tuple[str, ...],
    email: str,
    password: str,
    document: str | None,
    **fields: Any,
) -> None:
    """Change a node's text, position or style. NODE is an id prefix or title."""
    if tags:
        fields["tags"] = list(tags)

    async def action(session: EditorSession) -> ServiceResult:
        return session.update_node(node, **fields)

    app.emit(app.run_editor("update_node", email, password, action, document=document))


@map_group.command(
    "remove-node",
    examples="""\
  mindmapctl map remove-node 3f2a
  mindmapctl map remove-node "Idea 1\"""",
)
@click.argument("node")
@_document_option
@_auth_options
@click.pass_obj
def remove_node(
    app: AppContext, node: str, email: str, password: str, document: str | None
) -> None:
    """Remove a node together with every connection touching it."""

    async def action(session: EditorSession) -> ServiceResult:
        return session.remove_node(node)

    app.emit(app.run_editor("remove_node", email, password, action, document=document))


@map_group.command(
    examples="""\
  mindmapctl map connect "Idea 1" Engines
  mindmapctl map connect 3f2a 9b1c --straight --dash 4,2""",
)
@click.argument("source")
@click.argument("target")
@click.option("--straight", is_flag=True, help="Draw a straight line instead of a curve.")
@click.option("--dash", default=None, help="Dash pattern, e.g. 4,2.")
@_document_option
@_auth_options
@click.pass_obj
def connect(
    app: AppContext,
    source: str,
    target: str,
    straight: bool,
    dash: str | None,
    email: str,
    password: str,
    document: str | None,
) -> None:
    """Link SOURCE to TARGET (id prefixes or titles)."""
    dash_array = _parse_dash(dash)

    async def action(session: EditorSession) -> ServiceResult:
        return session.connect(source, target, curved=not straight, dash_array=dash_array)

    app.emit(app.run_editor("connect", email, password, action, document=document))


@map_group.command(
    examples="""\
  mindmapctl map restyle 7c0e --color "#455A64" --thickness 3
  mindmapctl map restyle 7c0e --straight --dash 4,2
  mindmapctl map restyle 7c0e --curved --dash \"\"""",
)
@click.argument("connection")
@click.option("--color", default=None, help="Line color (#RGB, #RRGGBB or #AARRGGBB).")
@click.option("--thickness", type=float, default=None, help="Line width.")
@click.option("--curved", is_flag=True, help="Draw a curve.")
@click.option("--straight", is_flag=True, help="Draw a straight line.")
@click.option("--dash", default=None, help='Dash pattern, e.g. 4,2 ("" for a solid line).')
@_document_option
@_auth_options
@click.pass_obj
def restyle(
    app: AppContext,
    connection: str,
    color: str | None,
    thickness: float | None,
    curved: bool,
    straight: bool,
    dash: str | None,
    email: str,
    password: str,
    document: str | None,
) -> None:
    """Change a connection's color, width, curve or dash. CONNECTION is an id prefix."""
    dash_array = _parse_dash(dash)
    if curved and straight:
        raise click.UsageError("--curved and --straight are mutually exclusive.")
    is_curved = curved if (curved or straight) else None

    async def action(session: EditorSession) -> ServiceResult:
        return session.update_connection(
            connection, color=color, thickness=thickness, curved=is_curved, dash_array=dash_array
        )

    app.emit(app.run_editor("update_connection", email, password, action, document=document))


@map_group.command(
    examples="""\
  mindmapctl map disconnect 7c0e"""
)
@click.argument("connection")
@_document_option
@_auth_options
@click.pass_obj
def disconnect(
    app: AppContext, connection: str, email: str, password: str, document: str | None
) -> None:
    """Remove a connection by id prefix."""

    async def action(session: EditorSession) -> ServiceResult:
        return session.disconnect(connection)

    app.emit(app.run_editor("disconnect", email, password, action, document=document))


@map_group.command(
    examples="""\
  mindmapctl map rename "Analytical engines\""""
)
@click.argument("title")
@_document_option
@_auth_options
@click.pass_obj
def rename(app: AppContext, title: str, email: str, password: str, document: str | None) -> None:
    """Change the document title."""

    async def action(session: EditorSession) -> ServiceResult:
        return session.rename(title)

    app.emit(app.run_editor("rename", email, password, action, document=document))


@map_group.command(
    examples="""\
  mindmapctl map search engine
  mindmapctl -q map search engine"""
)
@click.argument("keyword")
@_document_option
@_auth_options
@click.pass_obj
def search(
    app: AppContext, keyword: str, email: str, password: str, document: str | None
) -> None:
    """Find nodes whose title or description contains KEYWORD."""

    async def action(session: EditorSession) -> ServiceResult:
        return session.search(keyword)

    app.emit(app.run_editor("search", email, password, action, document=document))


@map_group.command(
    "import",
    examples="""\
  mindmapctl map import outline.json
  cat outline.json | mindmapctl map import -""",
)
@click.argument("outline_file", type=click.File("r", encoding="utf-8"))
@_document_option
@_auth_options
@click.pass_obj
def import_outline(
    app: AppContext,
    outline_file: IO[str],
    email: str,
    password: str,
    document: str | None,
) -> None:
    """Replace the document's content with a JSON outline."""
    try:
        payload = json.load(outline_file)
    except json.JSONDecodeError as exc:
        app.emit(ServiceResult.failure("apply_outline", "INVALID_OUTLINE", f"Invalid JSON: {exc}"))
        return
    if not isinstance(payload, dict):
        app.emit(
            ServiceResult.failure("apply_outline", "INVALID_OUTLINE", "Outline must be an object")
        )
        return

    async def action(session: EditorSession) -> ServiceResult:
        return await session.apply_outline(payload)

    app.emit(app.run_editor("apply_outline", email, password, action, document=document))


@map_group.command(
    examples="""\
  mindmapctl map generate "History of computing\""""
)
@click.argument("topic")
@_document_option
@_auth_options
@click.pass_obj
def generate(app: AppContext, topic: str, email: str, password: str, document: str | None) -> None:
    """Replace the document with one generated by an installed plugin."""

    async def action(session: EditorSession) -> ServiceResult:
        return await session.generate(topic)

    app.emit(app.run_editor("generate", email, password, action, document=document))
