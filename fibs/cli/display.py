"""Rich renderables for the listing and diagnostics commands."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence

import networkx as nx
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree


def section(console: Console, title: str) -> None:
    console.print(Text(f"=== {title}:", style="yellow"))


def table(title: Optional[str], columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> Table:
    """Build a plain table, every cell rendered with ``str()``."""
    tbl = Table(title=title, show_header=True, header_style="bold", box=None, pad_edge=False)
    for column in columns:
        tbl.add_column(column)
    for row in rows:
        tbl.add_row(*(cell if isinstance(cell, Text) else str(cell) for cell in row))
    return tbl


def status(found: bool, optional: bool = False) -> Text:
    if found:
        return Text("found", style="green")
    if optional:
        return Text("OPTIONAL, NOT FOUND", style="yellow")
    return Text("NOT FOUND", style="red")


def import_tree(graph: nx.DiGraph, root: str) -> Tree:
    """Render the import graph below ``root`` as a tree.

    Directories reachable over several paths are expanded once.
    """
    tree = Tree(Text(root, style="bold"))
    seen = {root}

    def add(node: str, branch: Tree) -> None:
        for child in graph.successors(node):
            name = graph.edges[node, child].get("name", "")
            label = Text(f"{name} ", style="cyan") + Text(child)
            sub = branch.add(label)
            if child not in seen:
                seen.add(child)
                add(child, sub)

    if root in graph:
        add(root, tree)
    return tree


def error_lines(errors: List[Any]) -> List[Text]:
    return [Text(f"  {err}", style="red") for err in errors]
