"""
Command-line interface for the GenAss package.

This module provides the CLI commands for the GenAss package:
- generate: Generate assets from an asset needs file
- estimate: Estimate the cost of an asset needs file
- costs: Show (or reset) the cost ledger
- health: Check that generation is configured
"""

import asyncio
import json
import signal
import sys
from typing import Optional, Tuple

import click

from genass import __version__
from genass.core.constants import SUPPORTED_FORMATS
from genass.core.logging_config import get_logger, configure_logging
from genass.generation.cancellation import CancellationToken

# Initialize logging
configure_logging()
logger = get_logger(__name__)


def _install_sigint_handler(token: CancellationToken) -> bool:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, _on_sigint, token)
    except (NotImplementedError, RuntimeError, ValueError) as e:
        logger.debug(f"SIGINT cancellation unavailable: {e}")
        return False
    return True


def _on_sigint(token: CancellationToken) -> None:
    click.echo("\nCancelling... (waiting for running assets to finish)", err=True)
    token.cancel()


async def _run_cancellable(coro_factory, token: CancellationToken):
    """
    Await coro_factory() with SIGINT wired to the cancellation token.
    """
    installed = _install_sigint_handler(token)
    try:
        return await coro_factory()
    finally:
        if installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)


def _print_report(report) -> None:
    click.echo("\nGenerated assets:")
    for result in report.results:
        need = result.asset_need
        if not result.success:
            click.echo(f"  [FAILED] {need.type} '{need.description}': {result.error}")
            continue

        label = "WARN" if result.metadata.warning else "OK"
        if result.metadata.degraded:
            label += ", DEGRADED"
        click.echo(f"  [{label}] {result.file_path} (quality {result.metadata.quality_score:.2f})")
        if result.metadata.warning:
            click.echo(f"      {result.metadata.warning}")

    summary = report.summary
    click.echo(
        f"\nTotal: {summary.successful}/{summary.total} succeeded, {summary.failed} failed, "
        f"{summary.warnings} with quality warnings. Cost: ${summary.total_cost:.4f}"
    )


@click.group()
@click.version_option(version=__version__)
def main():
    """
    GenAss - Asset Generation Pipeline.

    Generates icons, logos, banners and other image assets from an asset
    needs file, with quality validation and cost controls.
    """
    pass


@main.command()
@click.argument('needs_path', type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True))
@click.option('-o', '--output-dir', type=click.Path(file_okay=False, dir_okay=True),
              help='Output directory (default: generated-assets)')
@click.option('-f', '--format', 'output_format', type=click.Choice(SUPPORTED_FORMATS),
              help='Output format (default: png)')
@click.option('-q', '--quality', type=click.IntRange(1, 100), help='Encoder quality (default: 90 for png, 85 otherwise)')
@click.option('-c', '--concurrency', type=click.IntRange(min=1), help='Assets generated at once (default: 3)')
@click.option('--max-retries', type=click.IntRange(min=1), help='Remote attempts per generation (default: 3)')
@click.option('--blend', 'blend_images', multiple=True, type=click.Path(exists=True, dir_okay=False),
              help='Reference image to blend into every asset (repeatable)')
@click.option('--character-consistency', is_flag=True, default=False,
              help='Keep one character across all assets (first --blend image is the reference)')
@click.option('--report', 'report_path', type=click.Path(dir_okay=False),
              help='Write a JSON report of the run')
def generate(needs_path: str, output_dir: Optional[str] = None, output_format: Optional[str] = None,
             quality: Optional[int] = None, concurrency: Optional[int] = None,
             max_retries: Optional[int] = None, blend_images: Tuple[str, ...] = (),
             character_consistency: bool = False, report_path: Optional[str] = None):
    """
    Generate assets from an asset needs file.

    NEEDS_PATH: Path to a JSON or YAML list of asset needs

    Examples:
      genass generate needs.json
      genass generate needs.yaml -o assets -f webp -c 2
      genass generate needs.json --blend mascot.png --character-consistency
    """
    from genass.generation.input_validator import InputValidator
    from genass.pipeline.pipeline_runner import PipelineRunner, default_options

    try:
        needs = InputValidator().load_needs_file(needs_path)
        options = default_options(
            output_dir=output_dir,
            format=output_format,
            quality=quality,
            max_retries=max_retries,
            blend_images=tuple(blend_images) or None,
        )

        runner = PipelineRunner()
        token = CancellationToken()
        click.echo(f"Generating {len(needs)} asset(s) into {options.output_dir} "
                   f"(estimated base cost ${runner.estimate_cost(len(needs)):.4f})")

        if character_consistency:
            reference = blend_images[0] if blend_images else None
            report = asyncio.run(_run_cancellable(
                lambda: runner.generate_with_character_consistency(needs, reference, options, token), token
            ))
        else:
            report = asyncio.run(_run_cancellable(
                lambda: runner.run(needs, options, concurrency, token), token
            ))

        _print_report(report)

        if report_path:
            runner.save_report(report, report_path)
            click.echo(f"Report saved to {report_path}")

    except Exception as e:
        logger.error(f"Error generating assets: {str(e)}")
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)

    if report.summary.failed:
        sys.exit(1)


@main.command()
@click.argument('needs_path', type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True))
def estimate(needs_path: str):
    """
    Estimate the cost of generating an asset needs file.

    The estimate assumes one generation per asset; regenerations add to it.
    """
    from genass.generation.input_validator import InputValidator
    from genass.generation.settings import GeneratorSettings

    try:
        needs = InputValidator().load_needs_file(needs_path)
        settings = GeneratorSettings.from_config()
    except Exception as e:
        logger.error(f"Error estimating cost: {str(e)}")
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)

    base = len(needs) * settings.cost_per_generation
    worst = base * (1 + settings.max_regeneration_attempts)
    click.echo(f"Assets: {len(needs)}")
    click.echo(f"Model: {settings.model} (${settings.cost_per_generation:.4f} per generation)")
    click.echo(f"Estimated cost: ${base:.4f} (up to ${worst:.4f} with regenerations)")


@main.command()
@click.option('--reset', is_flag=True, default=False, help='Clear the cost ledger')
def costs(reset: bool = False):
    """
    Show spend recorded in the cost ledger.
    """
    from genass.pipeline.cost_tracker import CostTracker

    tracker = CostTracker()

    if reset:
        if not tracker.reset_costs():
            click.echo(f"Error: could not reset {tracker.costs_file}", err=True)
            sys.exit(1)
        click.echo("Cost ledger reset")
        return

    summary = tracker.get_cost_summary()
    budget = tracker.check_budget()
    click.echo(f"Total: ${summary.total_cost:.4f} over {summary.total_operations} operation(s), "
               f"{summary.total_assets} asset(s)")
    click.echo(f"Average per asset: ${summary.average_cost_per_asset:.4f}")
    click.echo(f"Today: ${summary.today:.4f}  Last 7 days: ${summary.this_week:.4f}  "
               f"Last 30 days: ${summary.this_month:.4f}")
    click.echo(f"Monthly budget: ${budget.limit:.2f} "
               f"({'within budget' if budget.within_budget else 'EXCEEDED'}, ${budget.remaining:.2f} remaining)")


@main.command()
def health():
    """
    Check that image generation is configured.
    """
    from genass.pipeline.pipeline_runner import PipelineRunner

    try:
        status = PipelineRunner().health_check()
    except Exception as e:
        logger.error(f"Health check error: {str(e)}")
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)

    click.echo(json.dumps(status, indent=2))
    if not status.get("healthy"):
        sys.exit(1)


if __name__ == '__main__':
    main()
