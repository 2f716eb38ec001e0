"""
Main CLI application for Wallet Percentiles.
"""

from typing import Optional
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, BarColumn, MofNCompleteColumn, TextColumn

from .config import Config
from .models import TRACKED_METRICS, PopulationSnapshot, SampleParameters, WalletMetrics
from .chain import ChainReader
from .api_clients import build_aggregator
from .analyzer import WalletAnalyzer
from .exceptions import BatchError
from .orchestrator import run_batch
from .percentiles import percentile_table
from .statistics import calculate_sample_size
from .utils import format_number, is_valid_ethereum_address

# Logging setup
import logging
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="wallet-percentiles",
    help="Sample random wallets from a chain and score wallets against their metric percentiles."
)

console = Console()


def load_config() -> Config:
    """Load application configuration."""
    try:
        return Config.from_env()
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        console.print(
            "\n[yellow]Please create a .env file (run: wallet-percentiles setup)[/yellow]")
        raise typer.Exit(1)


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_analyzer(config: Config) -> WalletAnalyzer:
    """Wire the chain reader and the configured explorer provider."""
    chain_reader = ChainReader(config)
    aggregator = build_aggregator(config)
    return WalletAnalyzer(chain_reader, aggregator, zero_result_retry=config.zero_result_retry)


def display_distribution(snapshot: PopulationSnapshot):
    """Print the percentile table of every metric."""
    console.print(
        f"\n[bold]Percentiles calculated for {snapshot.sample_size} random wallets[/bold]")
    for metric in TRACKED_METRICS:
        table = Table(title=f"Percentiles for {metric}")
        table.add_column("Percentile", style="cyan", justify="right")
        table.add_column("Value", style="green", justify="right")
        for percentile, value in percentile_table(snapshot, metric):
            table.add_row(f"{percentile:.2f}%", f"{value:,.6f}".rstrip("0").rstrip("."))
        console.print(table)


def display_wallet(metrics: WalletMetrics):
    table = Table(title=f"Wallet {metrics.address}")
    table.add_column("Metric", style="magenta", no_wrap=True)
    table.add_column("Value", style="green", justify="right")
    for metric in TRACKED_METRICS:
        value = getattr(metrics, metric)
        table.add_row(metric, f"{value:,}" if isinstance(value, int) else format_number(value, 6))
    console.print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on"),
    unique: Optional[bool] = typer.Option(
        None, "--unique/--allow-duplicates", help="Drop repeated addresses from the sample"),
    max_draws: Optional[int] = typer.Option(
        None, "--max-draws", help="Maximum number of random block draws"),
):
    """Build the population distribution, then serve the scoring API."""
    import uvicorn

    from .server import create_app

    config = load_config()
    configure_logging(config.log_level)

    params = SampleParameters(
        confidence_level=config.confidence_level,
        margin_of_error=config.margin_of_error,
        population_size=config.population_size,
    )
    console.print(f"[cyan]Sample size to analyze: {params.sample_size()}[/cyan]")

    analyzer = build_analyzer(config)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Analyzing wallets...", total=None)

        def on_wallet(done: int, total: int, _metrics: Optional[WalletMetrics]):
            progress.update(task, completed=done, total=total)

        try:
            result = run_batch(
                params,
                analyzer.chain_reader,
                analyzer,
                max_draws=max_draws if max_draws is not None else config.max_sample_draws,
                unique=unique if unique is not None else config.unique_samples,
                progress=on_wallet,
            )
        except BatchError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

    console.print(
        f"[green]Analyzed {len(result.wallets)} of {len(result.addresses)} sampled wallets[/green]")
    if result.failed:
        console.print(f"[yellow]Skipped {len(result.failed)} wallets after errors[/yellow]")
    display_distribution(result.snapshot)

    api = create_app(analyzer, result.snapshot)
    uvicorn.run(api, host=host or config.host, port=port or config.port)


@app.command("sample-size")
def sample_size(
    confidence: int = typer.Option(95, "--confidence", "-c", help="Confidence level: 90, 95 or 99"),
    margin: float = typer.Option(0.05, "--margin", "-e", help="Margin of error, e.g. 0.05"),
    population: Optional[int] = typer.Option(None, "--population", "-n", help="Population size"),
):
    """Print the number of wallets needed for the requested precision."""
    if margin <= 0:
        console.print("[red]Margin of error must be greater than 0[/red]")
        raise typer.Exit(1)
    console.print(calculate_sample_size(confidence, margin, population))


@app.command()
def analyze(address: str = typer.Argument(..., help="Wallet address")):
    """Analyze a single wallet and print its metrics."""
    if not is_valid_ethereum_address(address):
        console.print(f"[red]Invalid address: {address}[/red]")
        raise typer.Exit(1)

    config = load_config()
    configure_logging(config.log_level)
    metrics = build_analyzer(config).try_analyze(address)
    if metrics is None:
        console.print(f"[red]Could not analyze wallet {address}[/red]")
        raise typer.Exit(1)
    display_wallet(metrics)


@app.command()
def setup():
    """Setup the application by creating a .env file template."""
    env_content = """# Wallet Percentiles Configuration

# Required: node JSON-RPC endpoint
RPC_URL=https://rpc.scroll.io

# Explorer provider: Blockscout when true, Scrollscan (Etherscan-style) otherwise
USE_BLOCKSCOUT=false
BLOCKSCOUT_API=https://scroll.blockscout.com/api/v2
SCROLLSCAN_API=https://api.scrollscan.com/api
API_KEY_SCROLL=your_scrollscan_api_key_here

# Sampling
CONFIDENCE_LEVEL=95
MARGIN_OF_ERROR=0.05
# POPULATION_SIZE=1000000
# MAX_SAMPLE_DRAWS=5000
UNIQUE_SAMPLES=false

# Retries
RPC_MAX_RETRIES=3
BLOCKSCOUT_MAX_ATTEMPTS=20
SCROLLSCAN_MAX_RETRIES=5
ZERO_RESULT_MAX_ATTEMPTS=6

# Server
PORT=3000
LOG_LEVEL=INFO
"""

    env_path = Path(".env")
    if env_path.exists():
        console.print("[yellow].env file already exists![/yellow]")
        if not typer.confirm("Overwrite existing .env file?"):
            return

    with open(env_path, 'w') as f:
        f.write(env_content)

    console.print(f"[green]Created .env file at {env_path.absolute()}[/green]")
    console.print(
        "\n[yellow]Please edit the .env file and set your endpoints:[/yellow]")
    console.print("1. Point RPC_URL at your node")
    console.print("2. Pick an explorer provider and set its URL (and API key)")
    console.print("3. Run: wallet-percentiles serve")


if __name__ == "__main__":
    app()
