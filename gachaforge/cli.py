"""Command line helpers for gachaforge."""

from __future__ import annotations

import argparse
import asyncio
import importlib
import inspect
import logging
import sys
from pathlib import Path
from random import Random

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .app import GachaApp
from .config import GachaConfig
from .diagnostics.drop_rates import DropRateSimulator, SimulationResult
from .domain.cards import Rarity
from .domain.exceptions import GachaError
from .loaders import load_catalog_from_json, validate_catalog_file
from .validators import validate_app

console = Console()


def run_simulator() -> None:
    parser = argparse.ArgumentParser(description="gachaforge drop-rate simulator")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--catalog", help="Path to catalog JSON file")
    source.add_argument("--module", help="Python module with register(app) function")
    parser.add_argument("pack_id", help="Pack identifier to simulate")
    parser.add_argument("--pulls", type=int, default=1000, help="Number of draws to simulate")
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible run")
    args = parser.parse_args()

    config = GachaConfig.from_env()
    _configure_logging(config.log_level)
    try:
        result = asyncio.run(_simulate(config, args))
    except (GachaError, ValueError) as exc:
        console.print(f"[bold red]Simulation failed:[/bold red] {exc}")
        sys.exit(1)
    _print_simulation(result)


async def _simulate(config: GachaConfig, args: argparse.Namespace) -> SimulationResult:
    app = GachaApp(config)
    await app.init_backend()
    try:
        await _populate(app, catalog=args.catalog, module=args.module)
        simulator = DropRateSimulator(app, rng=Random(args.seed) if args.seed is not None else None)
        return await simulator.simulate(args.pack_id, pulls=args.pulls)
    finally:
        await app.close()


def _print_simulation(result: SimulationResult) -> None:
    table = Table(title=f"Pack {result.pack_id}: {result.pulls} draws")
    table.add_column("Rarity")
    table.add_column("Draws", justify="right")
    table.add_column("Observed", justify="right")
    table.add_column("Configured", justify="right")
    observed = result.observed_rates()
    for rarity in Rarity.ordered():
        if not result.rarity_counts.get(rarity) and rarity not in result.expected_rates:
            continue
        table.add_row(
            rarity.value,
            str(result.rarity_counts.get(rarity, 0)),
            f"{observed.get(rarity, 0.0):.2%}",
            f"{result.expected_rates.get(rarity, 0.0):.2%}",
        )
    console.print(table)
    console.print(f"Pity triggers: [bold]{result.pity_triggers}[/bold]")


def run_validate() -> None:
    parser = argparse.ArgumentParser(description="gachaforge validator")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--catalog",
        help="Path to catalog JSON file for validation",
    )
    group.add_argument(
        "--module",
        help="Python module with register(app) function to validate",
    )
    args = parser.parse_args()

    config = GachaConfig.from_env()
    _configure_logging(config.log_level)

    if args.catalog:
        errors = validate_catalog_file(Path(args.catalog))
        if errors:
            console.print("[bold red]Catalog errors:[/bold red]")
            for err in errors:
                console.print(f"- {err}")
            sys.exit(1)
        console.print("[bold green]Catalog is valid[/bold green]")
        return

    issues = asyncio.run(_validate_module(config, args.module))
    if issues:
        console.print("[bold red]Configuration errors:[/bold red]")
        for issue in issues:
            console.print(f"- {issue}")
        sys.exit(1)
    console.print("[bold green]Configuration is valid[/bold green]")


async def _validate_module(config: GachaConfig, module: str) -> list[str]:
    app = GachaApp(config)
    await app.init_backend()
    try:
        await _populate(app, module=module)
        return await validate_app(app)
    finally:
        await app.close()


async def _populate(app: GachaApp, *, catalog: str | None = None, module: str | None = None) -> None:
    if catalog:
        await load_catalog_from_json(app, catalog)
    if module:
        await _load_module(module, app)


async def _load_module(path: str, app: GachaApp) -> None:
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    module = importlib.import_module(path)
    if not hasattr(module, "register"):
        raise RuntimeError(f"Module {path} does not define register(app).")
    outcome = module.register(app)
    if inspect.isawaitable(outcome):
        await outcome


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
