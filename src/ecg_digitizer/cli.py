"""CLI for ECG image digitization with parallel batch processing."""

import sys
from pathlib import Path

import click
from pydantic import ValidationError

from ecg_digitizer import config
from ecg_digitizer._logging import set_log_file, set_log_level
from ecg_digitizer.digitizer import BatchItem, Digitizer
from ecg_digitizer.loaders import ConfigLoader
from ecg_digitizer.models import DigitizerConfig, ProcessingError
from ecg_digitizer.utils.cv_utils import init_backend, save_image


def _build_config(
    config_file: Path | None,
    overrides: dict,
) -> DigitizerConfig:
    base = ConfigLoader.from_file(config_file) if config_file else DigitizerConfig()
    data = base.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    return DigitizerConfig(**data)


def _write_outputs(item: BatchItem, out_dir: Path, write_trace: bool) -> list[str]:
    """Write CSV (and trace PNG); return error messages."""
    if item.result is None:
        return [f"No result to write for {item.name}"]
    stem = Path(item.name).stem
    csv_path = item.result.ecg_data.to_csv(out_dir / f"{stem}.csv")
    messages = []
    if write_trace:
        saved = save_image(item.result.trace, out_dir / f"{stem}_trace.png")
        if isinstance(saved, ProcessingError):
            messages.append(saved.message)
    click.echo(f"  Output: {csv_path}")
    return messages


@click.command()
@click.argument("images", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option("--layout", type=str, default=None, help="Lead layout ROWSxCOLS, e.g. 6x2 or 3x4")
@click.option(
    "--rhythm",
    "rhythm_leads",
    multiple=True,
    help="Rhythm strip lead printed below the grid (repeatable, top to bottom)",
)
@click.option(
    "--rp-at-right",
    "reference_pulse_at_right",
    is_flag=True,
    help="Reference pulses are printed at the right end of each row",
)
@click.option("--cabrera", is_flag=True, help="Leads are printed in Cabrera order")
@click.option("--interpolation", type=int, default=None, help="Resample every lead to N samples")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, path_type=Path),
    help="JSON or TOML config file; CLI options override it",
)
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path),
    help="Output directory (default: next to each image)",
)
@click.option(
    "--max-workers",
    type=int,
    default=None,
    help=f"Images processed in parallel (default {config.DEFAULT_MAX_WORKERS})",
)
@click.option("--no-trace", is_flag=True, help="Do not write the trace overlay image")
@click.option("--log-file", type=click.Path(path_type=Path), help="Also write logs to this file")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def main(
    images: tuple[Path, ...],
    layout: str | None,
    rhythm_leads: tuple[str, ...],
    reference_pulse_at_right: bool,
    cabrera: bool,
    interpolation: int | None,
    config_file: Path | None,
    output_dir: Path | None,
    max_workers: int | None,
    no_trace: bool,
    log_file: Path | None,
    verbose: bool,
) -> None:
    """Digitize paper ECG images into per-lead CSV signals."""
    if not images:
        click.echo("Error: No input images provided", err=True)
        sys.exit(1)

    set_log_level("DEBUG" if verbose else "WARNING")
    if log_file:
        set_log_file(log_file)

    if max_workers is not None and max_workers < 1:
        click.echo("Error: --max-workers must be >= 1", err=True)
        sys.exit(1)

    try:
        digitizer_config = _build_config(
            config_file,
            {
                "layout": layout,
                "rhythm_leads": list(rhythm_leads) or None,
                "reference_pulse_at_right": reference_pulse_at_right or None,
                "cabrera": cabrera or None,
                "interpolation": interpolation,
                "max_workers": max_workers,
            },
        )
    except (ValidationError, ValueError) as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(1)

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    digitizer = Digitizer(digitizer_config, init_backend(digitizer_config.opencv_threads))

    def _progress(done: int, total: int, item: BatchItem) -> None:
        if verbose:
            status = "ok" if item.ok else "failed"
            click.echo(f"[{done}/{total}] {item.name}: {status}")

    items = digitizer.digitize_batch(
        [(str(p), p) for p in images], progress=_progress
    )

    success_count = 0
    fail_count = 0
    for path, item in zip(images, items):
        if item.error is not None or item.result is None:
            fail_count += 1
            click.echo(f"Error processing {path}: {item.error}", err=True)
            continue
        errors = _write_outputs(item, output_dir or path.parent, not no_trace)
        for message in errors:
            click.echo(f"  Warning: {message}", err=True)
        success_count += 1

    if len(images) > 1:
        click.echo(
            f"Processed {success_count + fail_count} images: "
            f"{success_count} success, {fail_count} failed"
        )

    if fail_count > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
