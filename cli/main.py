"""Command-line front end for the BMI calculator"""
import asyncio
import logging.config
import sys

import click
import sentry_sdk

from settings.logs import LogsConfig
from settings.config import AppConfig, STAND
from app.controller import BMIController
from app.database import build_engine, init_db
from app.schemas import UnitMode
from app.services import HistoryStore
from app.storage import KeyValueStorage
from app.utils.error_handler import ValidationError

# Настраиваем логирование
logging.config.dictConfig(LogsConfig.LOGGING)
logger = logging.getLogger(__name__)

sentry_sdk.init(
    dsn=AppConfig.SENTRY_DSN,
    environment=STAND
)


async def _run(db_url: str, action):
    """Открывает хранилище, загружает историю и выполняет action(controller)"""
    db_engine, session_maker = build_engine(db_url)
    try:
        await init_db(db_engine)
        controller = BMIController(HistoryStore(KeyValueStorage(session_maker)))
        await controller.start()
        return await action(controller)
    finally:
        await db_engine.dispose()


def _format_entry(entry) -> str:
    return f"{entry.id}  {entry.date:>6}  {entry.bmi_display:>5}  {entry.category}"


@click.group()
@click.option(
    "--db-url",
    default=AppConfig.DB_URL,
    show_default=False,
    help="SQLAlchemy URL of the local history database",
)
@click.pass_context
def main(ctx: click.Context, db_url: str):
    """BMI calculator with on-device history."""
    ctx.obj = {"db_url": db_url}


@main.command(name="calc")
@click.argument("height")
@click.argument("weight")
@click.option(
    "-u",
    "--unit",
    type=click.Choice([mode.value for mode in UnitMode]),
    default=UnitMode.METRIC.value,
    help="metric: cm/kg, imperial: in/lbs",
)
@click.pass_obj
def calc(obj: dict, height: str, weight: str, unit: str):
    """Calculate BMI and save it to history."""
    async def action(controller: BMIController):
        controller.set_unit(unit)
        controller.height = height
        controller.weight = weight
        result = await controller.calculate()
        return result, controller.history[0]

    try:
        result, entry = asyncio.run(_run(obj["db_url"], action))
    except ValidationError as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"BMI {result.bmi_display} ({result.category})", bold=True))
    click.echo(f"Saved as {entry.id}")


@main.command(name="history")
@click.pass_obj
def history(obj: dict):
    """Show past calculations, most recent first."""
    async def action(controller: BMIController):
        return controller.history

    entries = asyncio.run(_run(obj["db_url"], action))
    if not entries:
        click.echo("No history yet.")
        return
    for entry in entries:
        click.echo(_format_entry(entry))


@main.command(name="delete")
@click.argument("entry_id")
@click.pass_obj
def delete(obj: dict, entry_id: str):
    """Delete one history entry by id."""
    async def action(controller: BMIController):
        before = len(controller.history)
        remaining = await controller.delete_item(entry_id)
        return before - len(remaining)

    removed = asyncio.run(_run(obj["db_url"], action))
    if removed:
        click.echo(f"Deleted {entry_id}")
    else:
        click.echo(f"No entry with id {entry_id}")


@main.command(name="clear")
@click.pass_obj
def clear(obj: dict):
    """Delete all history."""
    async def action(controller: BMIController):
        await controller.clear_history()

    asyncio.run(_run(obj["db_url"], action))
    click.echo("History cleared")


if __name__ == "__main__":
    main()
