#!/usr/bin/env python3
"""
CLI interface for the payment message extractor.
"""
import logging
from pathlib import Path
from typing import List, Optional, Union

import typer
from pydantic import TypeAdapter
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from payparse.core.attachments import match_image_reference, scan_attachments
from payparse.core.config import ExtractionConfig, load_config
from payparse.core.runner import build_ocr_records, parse_chat, summarize_by_currency
from payparse.models.schema import ChatParseResult, PaymentRecord

app = typer.Typer(help="Extract payment records from chat exports and receipt OCR text")
console = Console()

_output_adapter = TypeAdapter(Union[ChatParseResult, List[PaymentRecord]])


def _load(config_path: Optional[Path]) -> ExtractionConfig:
    try:
        return load_config(config_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _read_text(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]Error: File not found: {path}[/red]")
        raise typer.Exit(1)
    return path.read_text(encoding='utf-8', errors='replace')


def _records_table(records: List[PaymentRecord], config: ExtractionConfig) -> Table:
    table = Table(title=f"{len(records)} payment records")
    table.add_column("When")
    table.add_column("From")
    table.add_column("Amount", justify="right")
    table.add_column("Description")

    for record in records:
        symbol = config.registry.get(record.currency).symbol
        table.add_row(
            record.timestamp.strftime("%Y-%m-%d %H:%M"),
            escape(record.counterparty),
            f"{symbol}{record.amount:,.2f} {record.currency.value}",
            escape(record.description),
        )
    return table


def _print_totals(records: List[PaymentRecord], config: ExtractionConfig):
    for total in summarize_by_currency(records, config):
        console.print(
            f"[bold]{total.name}[/bold]: {total.symbol}{total.total:,.2f} "
            f"({total.count} payments)"
        )


@app.command()
def chat(
    transcript: Path = typer.Argument(..., help="Path to exported chat .txt file"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration overrides"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Extract payment messages from a chat export."""
    text = _read_text(transcript)
    config = _load(config_path)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        progress.add_task("Parsing transcript...", total=None)
        result = parse_chat(text, config=config, verbose=verbose)

    if output:
        output.write_text(result.model_dump_json(indent=2), encoding='utf-8')
        console.print(f"[green]✓ Parsed successfully! Output written to: {output}[/green]")
    else:
        console.print(_records_table(result.records, config))

    _print_totals(result.records, config)
    console.print(f"Skipped {result.skipped} of {result.lines_total} lines")
    if result.attachments:
        console.print(f"[blue]Referenced images: {', '.join(result.attachments)}[/blue]")


@app.command()
def receipt(
    ocr_text: Path = typer.Argument(..., help="Path to text produced by the OCR engine"),
    image: Optional[str] = typer.Option(None, "--image", "-i", help="Source image filename"),
    confidence: Optional[float] = typer.Option(None, "--confidence", min=0, max=100, help="OCR confidence (0-100)"),
    transcript: Optional[Path] = typer.Option(None, "--transcript", "-t", help="Chat export whose attachment names the image should match"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration overrides"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Extract receipt items from OCR text."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    text = _read_text(ocr_text)
    config = _load(config_path)
    image_ref = image or ocr_text.name
    if transcript:
        references = scan_attachments(_read_text(transcript), config.image_extensions)
        matched = match_image_reference(image_ref, references, config)
        if matched:
            image_ref = matched
        else:
            console.print(f"[yellow]No attachment in {escape(str(transcript))} matches {escape(image_ref)}[/yellow]")

    records = build_ocr_records(text, image_ref, confidence, config=config)

    if output:
        payload = TypeAdapter(List[PaymentRecord]).dump_json(records, indent=2)
        output.write_bytes(payload)
        console.print(f"[green]✓ {len(records)} records written to: {output}[/green]")
    else:
        console.print(_records_table(records, config))

    _print_totals(records, config)


@app.command()
def attachments(
    transcript: Path = typer.Argument(..., help="Path to exported chat .txt file"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration overrides")
):
    """List image attachments referenced in a chat export."""
    text = _read_text(transcript)
    config = _load(config_path)

    filenames = scan_attachments(text, config.image_extensions)
    if not filenames:
        console.print("No image attachments referenced")
        return
    for filename in filenames:
        console.print(filename)


@app.command()
def validate(
    json_path: Path = typer.Argument(..., help="Path to JSON file to validate")
):
    """Validate `chat --out` or `receipt --out` JSON against the schema."""
    try:
        data = _output_adapter.validate_json(_read_text(json_path))
        console.print("[green]✓ JSON is valid[/green]")
        if isinstance(data, ChatParseResult):
            console.print(f"Records: {len(data.records)}")
            console.print(f"Attachments: {len(data.attachments)}")
            console.print(f"Skipped lines: {data.skipped}")
        else:
            console.print(f"Records: {len(data)}")
    except ValueError as e:
        console.print(f"[red]Validation failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
