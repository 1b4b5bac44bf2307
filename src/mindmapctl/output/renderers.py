"""Human-readable output for :class:`ServiceResult`, one renderer per op.

Renderers draw onto a buffered Rich console supplied by
:func:`render_result`. Ops without a dedicated renderer print their data
as ``key: value`` lines under an ``OK`` banner.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from mindmapctl.output.console import create_console, get_output, short_id

if TYPE_CHECKING:
    from rich.console import Console

    from mindmapctl.services.result import ServiceResult

Renderer = Callable[["ServiceResult", "Console"], None]

_ID_LIST_KEYS = ("items", "matches")


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render *result* as text; styling is dropped when not on a terminal."""
    console = create_console()
    if not result.ok:
        _render_error(result, console, verbose=verbose)
    else:
        _OP_RENDERERS.get(result.op, _render_generic)(result, console)
        if verbose and result.meta:
            _render_meta(console, result.meta)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One line per id, ``OK: <op>`` when there is none, or the error."""
    if not result.ok:
        reason = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {reason}"

    for key in _ID_LIST_KEYS:
        rows = result.data.get(key)
        if isinstance(rows, list) and rows:
            return "\n".join(
                str(row["id"]) for row in rows if isinstance(row, dict) and "id" in row
            )
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


def _banner(console: Console, label: str, op: str, *rest: Any) -> None:
    style = "mm.ok" if label == "OK" else "mm.error"
    console.print(Text(label, style=style), Text(f"  {op}", style="mm.op"), *rest)


def _value_text(key: str, value: Any) -> Text:
    if key == "id" or key.endswith("_id"):
        return Text(str(value), style="mm.id")
    if key == "title":
        return Text(str(value), style="mm.title")
    if isinstance(value, (dict, list)):
        return Text(json.dumps(value, separators=(",", ":")))
    return Text(str(value))


def _field(console: Console, key: str, value: Any) -> None:
    console.print(Text(f"  {key}: ", style="mm.key"), _value_text(key, value), sep="")


def _render_meta(console: Console, meta: dict[str, Any]) -> None:
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in meta.items():
        console.print(f"    {key}: {value}")


def _node_table(nodes: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="mm.id", no_wrap=True)
    table.add_column("Title", style="mm.title")
    table.add_column("Description")
    table.add_column("Color", style="mm.code")
    table.add_column("Position", justify="right")
    for node in nodes:
        table.add_row(
            short_id(str(node.get("id", ""))),
            str(node.get("title", "")),
            str(node.get("description") or ""),
            str(node.get("color", "")),
            f"{node.get('x', 0):g}, {node.get('y', 0):g}",
        )
    return table


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    _banner(console, "ERROR", result.op, "—", err.message if err else "Unknown error")
    if not (verbose and err):
        return
    console.print(Text(f"  code: {err.code}", style="dim"))
    for key, value in err.detail.items():
        console.print(f"    {key}: {value}")


def _render_account(result: ServiceResult, console: Console) -> None:
    _banner(console, "OK", result.op)
    for key in ("email", "label", "display_name", "expires_in_minutes"):
        value = result.data.get(key)
        if value is not None:
            _field(console, key, value)


def _render_document(result: ServiceResult, console: Console) -> None:
    d = result.data
    console.print(Text(str(d.get("title", "")), style="mm.title"), Text(f"  {d.get('id', '')}"))
    nodes = d.get("nodes", [])
    connections = d.get("connections", [])
    if nodes:
        console.print(_node_table(nodes))
    titles = {n["id"]: n["title"] for n in nodes}
    for conn in connections:
        source = titles.get(conn["source_id"], conn["source_id"])
        target = titles.get(conn["target_id"], conn["target_id"])
        console.print(f"  [mm.id]{short_id(conn['id'])}[/mm.id]  {source} → {target}")
    console.print(f"\n{len(nodes)} nodes, {len(connections)} connections")


def _render_document_list(result: ServiceResult, console: Console) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="mm.id", no_wrap=True)
    table.add_column("Title", style="mm.title")
    table.add_column("Updated", style="dim")
    for item in items:
        table.add_row(short_id(str(item["id"])), str(item["title"]), str(item["updated_at"]))
    console.print(table)
    console.print(f"\n{len(items)} documents")


def _render_search(result: ServiceResult, console: Console) -> None:
    matches = result.data.get("matches", [])
    console.print(_node_table(matches))
    console.print(f"\n{len(matches)} matches for {result.data.get('keyword', '')!r}")


def _render_mutation(result: ServiceResult, console: Console) -> None:
    _banner(console, "OK", result.op)
    for key in (
        "id", "title", "source_id", "target_id", "color", "thickness", "removed_connections"
    ):
        if key in result.data:
            _field(console, key, result.data[key])


def _render_generic(result: ServiceResult, console: Console) -> None:
    """Every data key on its own line."""
    _banner(console, "OK", result.op)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Renderer] = {
    # Accounts
    "register": _render_account,
    "login": _render_account,
    "send_reset_code": _render_account,
    "reset_password": _render_account,
    # Documents
    "open": _render_document,
    "apply_outline": _render_document,
    "generate": _render_document,
    "list_documents": _render_document_list,
    "search": _render_search,
    # Edits
    "rename": _render_mutation,
    "add_node": _render_mutation,
    "update_node": _render_mutation,
    "remove_node": _render_mutation,
    "connect": _render_mutation,
    "update_connection": _render_mutation,
    "disconnect": _render_mutation,
}
