"""
CLI tool for pnl_engine.
Runs signal accounting over price/signal CSV files.
"""

import click
import yaml
import logging
import sys
import pandas as pd

from pnl_engine.config_schemas import AccountingConfig, load_config
from pnl_engine.engine import compute_accounting
from pnl_engine.errors import AccountingError
from pnl_engine.logging_config import configure_structlog

logger = logging.getLogger(__name__)


@click.group()
@click.option('--debug/--no-debug', default=False, help='Enable debug logging')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Write logs to a file instead of stderr')
def cli(debug, log_file):
    """Signal P&L accounting CLI."""
    configure_structlog("DEBUG" if debug else "WARNING", log_file=log_file)


@cli.command()
@click.argument('prices_csv', type=click.Path(exists=True, dir_okay=False))
@click.option('--signals', 'signals_csv', type=click.Path(exists=True, dir_okay=False),
              help='CSV holding the signal column (default: PRICES_CSV)')
@click.option('--signal-column', default='signal', show_default=True, help='Name of the signal column')
@click.option('--point-value', type=float, help='Currency value of a one-point move')
@click.option('--cost', 'cost_per_unit', type=float, help='Commission per unit, charged on close')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML accounting config')
@click.option('--output', type=click.Path(dir_okay=False), help='Output CSV (default: stdout)')
def compute(prices_csv, signals_csv, signal_column, point_value, cost_per_unit, config_path, output):
    """Compute cash, open equity, net liquidation and returns."""
    try:
        config = load_config(config_path) if config_path else AccountingConfig()
    except (ValueError, OSError, yaml.YAMLError) as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    prices = pd.read_csv(prices_csv)
    signal_frame = pd.read_csv(signals_csv) if signals_csv else prices

    if signal_column not in signal_frame.columns:
        click.echo(f"Error: signal column '{signal_column}' not found. "
                   f"Available: {list(signal_frame.columns)}", err=True)
        sys.exit(1)

    bars = prices.drop(columns=[signal_column], errors='ignore')

    try:
        result = compute_accounting(
            bars,
            signal_frame[signal_column],
            point_value=point_value,
            cost_per_unit=cost_per_unit,
            config=config,
        )
    except AccountingError as e:
        click.echo(f"Error: {e}", err=True)
        logger.debug("Accounting failed", exc_info=True)
        sys.exit(1)

    df = result.to_dataframe()
    if output:
        df.to_csv(output, index=False)
        click.echo(f"Wrote {len(df)} rows to {output}")
    else:
        click.echo(df.to_csv(index=False), nl=False)

    stats = result.compute_statistics()
    click.echo("Summary:", err=True)
    for key, value in stats.items():
        click.echo(f"  {key}: {value}", err=True)


if __name__ == '__main__':
    cli()
