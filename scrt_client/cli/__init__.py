"""
scrt_client.cli
===============

Command-line interface for scrt-client, installed as the `scrt-client`
console script. Typer is only imported when the CLI is actually used.

    $ scrt-client --help
    >>> from scrt_client.cli import main
    >>> main(["fee", "200000"])
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, List, Optional

__all__: List[str] = ["main", "app"]

_SUBMODULE = "scrt_client.cli.commands"


def __getattr__(name: str) -> Any:  # PEP 562 lazy attribute access
    if name == "app":
        return getattr(import_module(_SUBMODULE), "app")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI and return its exit code."""
    mod = import_module(_SUBMODULE)
    return int(mod.main(argv))
