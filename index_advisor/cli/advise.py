"""Command-line entry point: advise on a request file and print JSON."""

from __future__ import annotations

import json
import sys
from typing import List, Optional

import click

from ..config import Config, load_config
from ..processor import BatchAdvisor, BatchOutcome, OutcomeStatus, load_requests
from ..utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _load_config_bundle(config_path: Optional[str]) -> Config:
    if config_path:
        return load_config(config_path)
    return Config()


def _apply_overrides(
    config: Config,
    workers: Optional[int],
    timeout: Optional[float],
    log_level: Optional[str],
    structured_logs: bool,
) -> None:
    if workers is not None:
        config.batch.max_workers = workers
    if timeout is not None:
        config.batch.timeout_seconds = timeout
    if log_level is not None:
        config.logging.level = log_level
    if structured_logs:
        config.logging.structured = True


def render_outcomes(outcomes: List[BatchOutcome]) -> str:
    """Serialize batch outcomes as deterministic JSON text."""
    documents = [outcome.to_dict() for outcome in outcomes]
    return json.dumps(documents, indent=2)


@click.command()
@click.argument(
    "request_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML configuration file.",
)
@click.option("--workers", type=click.IntRange(min=1), help="Worker threads for batch requests.")
@click.option("--timeout", type=click.FloatRange(min=0), help="Batch deadline in seconds.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level.",
)
@click.option("--structured-logs", is_flag=True, help="Emit JSON log lines.")
def cli(
    request_path: str,
    config_path: Optional[str],
    workers: Optional[int],
    timeout: Optional[float],
    log_level: Optional[str],
    structured_logs: bool,
) -> None:
    """Recommend composite indexes and join strategies for REQUEST_PATH."""
    try:
        config = _load_config_bundle(config_path)
    except (TypeError, ValueError) as exc:
        raise click.ClickException(f"invalid config file: {exc}") from exc
    _apply_overrides(config, workers, timeout, log_level, structured_logs)
    setup_logging(
        level=config.logging.level,
        structured=config.logging.structured,
        log_file=config.logging.log_file,
    )

    try:
        requests = load_requests(request_path)
    except ValueError as exc:
        raise click.ClickException(f"invalid request file: {exc}") from exc

    logger.info("Loaded %d request(s) from %s", len(requests), request_path)
    outcomes = BatchAdvisor.from_config(config).advise_all(requests)
    click.echo(render_outcomes(outcomes))

    if any(outcome.status != OutcomeStatus.EVALUATED for outcome in outcomes):
        sys.exit(1)


if __name__ == "__main__":
    cli()
