"""Command-line interface for shotgen.

    shotgen generate --prompt "A castle at sunset" --ratio 16:9
    shotgen batch prompts.json
    shotgen scenario story.txt --with-cast
"""

from __future__ import annotations

import argparse
import asyncio
from contextlib import AsyncExitStack
import logging
from pathlib import Path
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from shotgen.core.api.imaging import AspectRatio, ImageProvider, ImageProviderClient
from shotgen.core.api.text import PromptSanitizerClient, ScenarioAnalyzerClient
from shotgen.core.config import AppConfig, configure_logging_from_config, load_app_config
from shotgen.core.errors import GenerationError
from shotgen.core.generation import (
    ArtStyle,
    BatchItem,
    BatchOrchestrator,
    BatchOutcome,
    BatchReport,
    Project,
    StoryboardGenerator,
)
from shotgen.core.persistence import InMemoryPersistenceGateway, LocalAssetStore
from shotgen.core.utils.json import read_json_any, write_json

console = Console()
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INCOMPLETE = 1
EXIT_CONFIG_ERROR = 2


class InputFileError(ValueError):
    """A batch or scenario input file is missing or malformed."""


def build_provider(config: AppConfig) -> ImageProvider:
    """Build the image provider client (requires an API key)."""
    return ImageProviderClient(config.provider)


def load_batch_items(path: Path, aspect_ratio: AspectRatio) -> list[BatchItem]:
    """Read a JSON list of ``{subject_id, prompt}`` objects.

    Raises:
        InputFileError: If the file is missing or not a list of valid items
    """
    if not path.exists():
        raise InputFileError(f"Batch file does not exist: {path}")
    try:
        raw = read_json_any(path)
    except ValueError as e:
        raise InputFileError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(raw, list):
        raise InputFileError(f"Batch file must contain a JSON list, got {type(raw).__name__}")

    items: list[BatchItem] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise InputFileError(f"Batch entry {i} must be an object")
        try:
            items.append(BatchItem.model_validate({"aspect_ratio": aspect_ratio, **entry}))
        except ValidationError as e:
            raise InputFileError(f"Batch entry {i} is invalid: {e.error_count()} problem(s)") from e
    return items


def _print_progress(outcome: BatchOutcome) -> None:
    mark = "[green]✓[/green]" if outcome.outcome.ok else "[red]✗[/red]"
    console.print(f"  {mark} {outcome.item.subject_id} ({outcome.status.value})")


def render_outcomes(outcomes: list[BatchOutcome], title: str) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Subject")
    table.add_column("Status")
    table.add_column("Polls", justify="right")
    table.add_column("Image / reason", overflow="fold")

    styles = {"done": "green", "failed": "red", "timed_out": "yellow"}
    for o in outcomes:
        status = o.status.value
        if o.outcome.image is not None:
            detail = o.outcome.image.asset_url
        else:
            kind = o.outcome.error_kind.value if o.outcome.error_kind else "error"
            detail = f"{kind}: {o.outcome.reason}"
        table.add_row(
            str(o.item.index),
            o.item.subject_id,
            f"[{styles.get(status, 'white')}]{status}[/]",
            str(o.outcome.poll_attempts),
            detail,
        )
    console.print(table)

    report = BatchReport.from_outcomes(outcomes)
    console.print(
        f"[bold]{report.done}/{report.total} done[/bold], "
        f"{report.failed} failed, {report.timed_out} timed out"
    )


def write_report(path: Path, outcomes: list[BatchOutcome], cast: list[BatchOutcome]) -> None:
    """Dump outcomes and their summary as JSON."""
    write_json(
        path,
        {
            "summary": BatchReport.from_outcomes(outcomes + cast),
            "outcomes": outcomes,
            "cast": cast,
        },
    )
    console.print(f"Report written to {path}")


async def run_command(args: argparse.Namespace, config: AppConfig) -> int:
    """Execute a parsed subcommand.

    Returns:
        EXIT_OK when every item is Done, EXIT_INCOMPLETE otherwise
    """
    ratio = AspectRatio.parse(args.ratio)
    project = Project(aspect_ratio=ratio, art_style=ArtStyle(args.style))

    async with AsyncExitStack() as stack:
        provider = build_provider(config)
        if hasattr(provider, "aclose"):
            stack.push_async_callback(provider.aclose)

        sanitizer = analyzer = None
        if config.text_service.enabled:
            sanitizer = PromptSanitizerClient(config.text_service)
            stack.push_async_callback(sanitizer.aclose)
            analyzer = ScenarioAnalyzerClient(config.text_service)
            stack.push_async_callback(analyzer.aclose)

        gateway = InMemoryPersistenceGateway(
            LocalAssetStore(config.storage.assets_dir, config.storage.public_base_url)
        )
        cast: list[BatchOutcome] = []
        generator = StoryboardGenerator(
            provider,
            gateway,
            project,
            sanitizer=sanitizer,
            analyzer=analyzer,
            settings=config.generation,
            signed_url_ttl_s=config.provider.signed_url_ttl_s,
        )

        if args.cmd == "generate":
            console.print(f"[bold]Generating[/bold] {args.subject} ({ratio.value})")
            outcome = await generator.generate_shot(args.subject, args.prompt)
            item = BatchItem(subject_id=args.subject, prompt=args.prompt, aspect_ratio=ratio)
            outcomes = [BatchOutcome(item=item, outcome=outcome)]
            title = "Shot"

        elif args.cmd == "batch":
            items = load_batch_items(Path(args.file), ratio)
            console.print(f"[bold]Generating batch[/bold] of {len(items)} item(s)")
            orchestrator = BatchOrchestrator(
                provider,
                gateway,
                sanitizer=sanitizer,
                settings=config.generation,
                signed_url_ttl_s=config.provider.signed_url_ttl_s,
                on_item_complete=_print_progress,
            )
            outcomes = await orchestrator.run_batch(items)
            title = "Batch"

        else:
            if analyzer is None:
                raise ValueError("scenario requires text_service.base_url (or SHOTGEN_TEXT_BASE_URL)")
            path = Path(args.file)
            if not path.exists():
                raise InputFileError(f"Scenario file does not exist: {path}")
            console.print("[bold]Analysing scenario...[/bold]")
            analysis, outcomes = await generator.analyze_and_generate(
                path.read_text(encoding="utf-8"), on_item_complete=_print_progress
            )
            if args.with_cast and analysis.characters:
                console.print(f"[bold]Generating cast[/bold] of {len(analysis.characters)}")
                cast = await generator.generate_cast(
                    analysis.characters, on_item_complete=_print_progress
                )
            title = "Scenario"

    render_outcomes(outcomes, title)
    if cast:
        render_outcomes(cast, "Cast")
    if args.report:
        write_report(Path(args.report), outcomes, cast)
    everything = outcomes + cast
    return EXIT_OK if all(o.outcome.ok for o in everything) else EXIT_INCOMPLETE


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to app config (.json/.yaml); defaults to ./shotgen.yaml if present",
    )
    common.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override the configured log level",
    )
    common.add_argument(
        "--ratio",
        default=AspectRatio.LANDSCAPE.value,
        choices=[r.value for r in AspectRatio],
        help="Aspect ratio: 16:9, 1:1 or 9:16 (default: 16:9)",
    )
    common.add_argument(
        "--style",
        default=ArtStyle.CINEMATIC.value,
        choices=[s.value for s in ArtStyle],
        help="Art style for character portraits (default: Cinematic)",
    )
    common.add_argument(
        "--report",
        default=None,
        help="Write outcomes and summary as JSON to this path",
    )

    p = argparse.ArgumentParser(
        prog="shotgen",
        description="shotgen - storyboard image generation",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    gen = sub.add_parser("generate", parents=[common], help="Generate one shot image")
    gen.add_argument("--prompt", required=True, help="Prompt or raw shot script")
    gen.add_argument("--subject", default="shot-1", help="Subject id (default: shot-1)")

    batch = sub.add_parser("batch", parents=[common], help="Generate a batch of prompts")
    batch.add_argument("file", help="JSON list of {subject_id, prompt} objects")

    scenario = sub.add_parser(
        "scenario", parents=[common], help="Analyse a scenario and generate every shot"
    )
    scenario.add_argument("file", help="Text file with the scenario")
    scenario.add_argument(
        "--with-cast", action="store_true", help="Also generate character portraits"
    )

    return p


def _load_config(args: argparse.Namespace) -> AppConfig:
    if args.config is not None and not Path(args.config).exists():
        raise FileNotFoundError(f"Config file does not exist: {args.config}")
    config = load_app_config(args.config)
    if args.log_level:
        config.logging = config.logging.model_copy(update={"level": args.log_level})
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    args = build_arg_parser().parse_args(argv)

    try:
        config = _load_config(args)
        configure_logging_from_config(config)
        return asyncio.run(run_command(args, config))
    except (FileNotFoundError, ValidationError, InputFileError) as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return EXIT_CONFIG_ERROR
    except ValueError as e:
        # Raised by client construction, e.g. a missing API key
        console.print(f"[red]ERROR: Invalid configuration: {e}[/red]")
        return EXIT_CONFIG_ERROR
    except GenerationError as e:
        console.print(f"[red]ERROR: {e.kind.value}: {e.message}[/red]")
        return EXIT_INCOMPLETE


if __name__ == "__main__":
    sys.exit(main())
