# Simple CLI for the offset worker
import asyncio
import sys
import click
from core.config.settings import Settings
from app.main import main as run_app


@click.group()
def cli():
    """Offset Worker CLI"""
    pass


@cli.command()
@click.option("--bootstrap-servers", default=None, help="Comma-separated broker addresses")
@click.option("--client-id", default=None, help="Client identifier reported to the broker")
@click.option("--topic", default=None, help="Topic to subscribe to")
@click.option("--group-id", default=None, help="Consumer group id; a new id starts with no committed offsets")
@click.option("--from-beginning/--from-latest", default=None,
              help="Where a new consumer group starts reading")
@click.option("--delay", type=click.FloatRange(min=0.0), default=None,
              help="Artificial processing time per message, in seconds")
def run(bootstrap_servers, client_id, topic, group_id, from_beginning, delay):
    """Run the offset worker"""
    settings = Settings().with_overrides({
        "redpanda.bootstrap_servers": bootstrap_servers,
        "redpanda.client_id": client_id,
        "consumer.topic": topic,
        "consumer.group_id": group_id,
        "consumer.from_beginning": from_beginning,
        "processing.delay_seconds": delay,
    })
    click.echo(f"Starting worker on topic '{settings.consumer.topic}' "
               f"as group '{settings.consumer.group_id}'...")
    sys.exit(asyncio.run(run_app(settings)))


@cli.command()
def config():
    """Print the effective configuration as JSON"""
    click.echo(Settings().model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
