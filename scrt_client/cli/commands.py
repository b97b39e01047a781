"""
scrt_client.cli.commands
========================

`scrt-client`: read-only inspection of a Secret Network node from the shell.

Examples
--------
    $ scrt-client --rpc https://rpc.example:443 env
    $ scrt-client fee 200000 --price 0.25
    $ scrt-client account secret1...
    $ scrt-client tx 5D3C...A1
    $ scrt-client txs "message.sender='secret1...'"

Configuration
-------------
- RPC URL      : `--rpc` or env `SCRT_RPC_URL` (default: http://127.0.0.1:26657)
- Chain ID     : `--chain-id` or env `SCRT_CHAIN_ID` (default: secret-4)
- HTTP Timeout : `--timeout` or env `SCRT_TIMEOUT` seconds (default: 10.0)

Contract attributes of looked-up transactions are printed as the node
reported them: the nonces needed to decrypt them only exist in the process
that signed the transaction.
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import dataclass
from typing import Any, Optional

import typer

from ..client import SecretNetworkClient
from ..config import ClientConfig
from ..errors import ScrtClientError
from ..tx.build import DEFAULT_FEE_DENOM, make_fee
from ..version import __version__

app = typer.Typer(
    name="scrt-client",
    help="Inspect accounts and transactions on a Secret Network node.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main"]


@dataclass
class Ctx:
    cfg: ClientConfig


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


def _open_client(cfg: ClientConfig) -> SecretNetworkClient:
    return SecretNetworkClient.from_config(cfg)


@app.callback()
def _root(
    ctx: typer.Context,
    rpc: Optional[str] = typer.Option(None, "--rpc", help="Tendermint RPC URL.", envvar="SCRT_RPC_URL"),
    chain_id: Optional[str] = typer.Option(None, "--chain-id", help="Chain ID.", envvar="SCRT_CHAIN_ID"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="HTTP timeout in seconds.", envvar="SCRT_TIMEOUT"),
) -> None:
    overrides = {"rpc_url": rpc, "chain_id": chain_id, "request_timeout": timeout}
    try:
        cfg = ClientConfig.with_overrides(
            ClientConfig.from_env(), **{k: v for k, v in overrides.items() if v is not None}
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    ctx.obj = Ctx(cfg=cfg)


@app.command("version")
def version() -> None:
    """Print the client version."""
    typer.echo(f"scrt-client {__version__}")


@app.command("env")
def env(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    c: Ctx = ctx.obj
    _print_json(c.cfg.to_dict())


@app.command("fee")
def fee(
    gas_limit: int = typer.Argument(..., help="Gas limit."),
    price: float = typer.Option(0.25, "--price", help="Gas price in the fee denom."),
    denom: str = typer.Option(DEFAULT_FEE_DENOM, "--denom", help="Fee denom."),
) -> None:
    """Print the fee a broadcast with these settings would pay."""
    try:
        std_fee = make_fee(gas_limit, price, denom)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    _print_json(std_fee.to_amino())


@app.command("account")
def account(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Bech32 account address."),
) -> None:
    """Show an account's kind, number and sequence."""

    async def _run():
        async with _open_client(ctx.obj.cfg) as client:
            return await client.auth.account(address)

    info = asyncio.run(_run())
    if info is None:
        typer.echo(f"account {address} not found", err=True)
        raise typer.Exit(code=1)
    _print_json(
        {
            "address": info.address,
            "kind": info.kind,
            "account_number": info.account_number,
            "sequence": info.sequence,
        }
    )


@app.command("tx")
def tx(
    ctx: typer.Context,
    tx_hash: str = typer.Argument(..., help="Transaction hash (hex)."),
) -> None:
    """Look up a committed transaction by hash."""

    async def _run():
        async with _open_client(ctx.obj.cfg) as client:
            return await client.get_tx(tx_hash)

    result = asyncio.run(_run())
    if result is None:
        typer.echo(f"tx {tx_hash.upper()} not found", err=True)
        raise typer.Exit(code=1)
    _print_json(result.to_dict())


@app.command("txs")
def txs(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Tendermint event query, e.g. \"message.sender='secret1...'\"."),
) -> None:
    """Search committed transactions."""

    async def _run():
        async with _open_client(ctx.obj.cfg) as client:
            return await client.txs_query(query)

    _print_json([r.to_dict() for r in asyncio.run(_run())])


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI. Returns an integer exit code."""
    try:
        rv = app(prog_name="scrt-client", standalone_mode=False, args=argv)
        # click hands back the exit code of typer.Exit in non-standalone mode
        return rv if isinstance(rv, int) else 0
    except typer.Exit as e:
        return int(e.exit_code)
    except ScrtClientError as e:
        typer.echo(f"error: {e}", err=True)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
