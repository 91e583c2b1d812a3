"""Command-line interface for the astrometry.net client.

Usage::

    telescope solve image.fits --wait
    telescope solve https://example.org/m42.jpg --detail annotated
    telescope submission 1234567
    telescope job 7654321
    telescope header image.fits
"""

import logging
import sys
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import NoReturn

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from telescope.adapters.fits_reader import read_header_data
from telescope.app_logging import configure_logging
from telescope.containers import AppContainer, build_container
from telescope.domain.responses import Annotation, Calibration
from telescope.domain.submissions import Review, ReviewDetail, SubmissionState
from telescope.errors import TelescopeError

console = Console()

_DETAIL_CHOICES = [detail.value for detail in ReviewDetail]


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Plate-solve images with astrometry.net."""
    configure_logging(logging.DEBUG if verbose else logging.INFO)


@main.command()
@click.argument("source")
@click.option("--key", "-k", help="Tracking key (defaults to the source)")
@click.option("--wait", "-w", is_flag=True, help="Poll until the submission finishes")
@click.option("--max-wait", default=600.0, show_default=True, help="Seconds to poll")
@click.option(
    "--detail",
    "-d",
    default=ReviewDetail.RESULTS.value,
    type=click.Choice(_DETAIL_CHOICES),
    show_default=True,
)
def solve(
    source: str, key: str | None, wait: bool, max_wait: float, detail: str
) -> None:
    """Upload a file or URL and print its review."""
    review_detail = ReviewDetail(detail)
    with _container() as container:
        client = container.client
        if source.startswith(("http://", "https://")):
            submission_id = client.upload_url(source, key=key)
        else:
            submission_id = client.upload(source, key=key)
        tracked_key = key or source
        console.print(
            f"Submitted [bold]{tracked_key}[/bold] as {submission_id}", soft_wrap=True
        )

        if wait:
            deadline = time.monotonic() + max_wait
            interval = container.settings.poll_interval_seconds
            while client.status(tracked_key) is SubmissionState.PENDING:
                if time.monotonic() >= deadline:
                    console.print("[yellow]Still pending, giving up.[/yellow]")
                    sys.exit(1)
                time.sleep(interval)
                client.refresh_all(review_detail)

        _print_review(client.review(tracked_key, review_detail))


@main.command()
@click.argument("submission_id", type=int)
def submission(submission_id: int) -> None:
    """Show the status of a submission."""
    with _container() as container:
        status = container.client.submission_status(submission_id)
    table = Table(title=f"Submission {submission_id}", box=box.SIMPLE)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Started", status.processing_started or "-")
    table.add_row("Finished", status.processing_finished or "-")
    table.add_row("Jobs", ", ".join(str(job) for job in status.jobs) or "-")
    table.add_row("Calibrated", "yes" if status.is_calibrated else "no")
    console.print(table)


@main.command()
@click.argument("job_id", type=int)
@click.option("--annotations", "-a", is_flag=True, help="Include object positions")
def job(job_id: int, annotations: bool) -> None:
    """Show the results of a job."""
    with _container() as container:
        results = container.client.job_results(job_id)
        found = container.client.annotations(job_id) if annotations else []
    console.print(f"Job {job_id}: [bold]{results.status or 'unknown'}[/bold]")
    if results.original_filename:
        console.print(f"File: {results.original_filename}")
    _print_calibration(results.calibration)
    if results.tags:
        console.print(f"Tags: {', '.join(results.tags)}")
    if found:
        _print_annotations(found)


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def header(path: str) -> None:
    """Show observation keywords from a FITS header."""
    try:
        data = read_header_data(path)
    except TelescopeError as exc:
        _fail(exc)
    table = Table(title=path, box=box.SIMPLE)
    table.add_column("Keyword")
    table.add_column("Value")
    for keyword, value in (
        ("OBSID", data.obs_id),
        ("RA", data.ra),
        ("DEC", data.dec),
        ("MJD-OBS", data.mjd),
        ("RADIUS", data.radius),
        ("EXPTIME", data.exposure_time),
    ):
        table.add_row(keyword, "-" if value is None else str(value))
    console.print(table)


@contextmanager
def _container() -> Iterator[AppContainer]:
    try:
        container = build_container()
    except ValueError as exc:
        _fail(exc)
    try:
        yield container
    except TelescopeError as exc:
        _fail(exc)
    finally:
        container.close_resources()


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[red]Error: {escape(str(exc))}[/red]", soft_wrap=True)
    sys.exit(1)


def _print_review(review: Review) -> None:
    if not review.finished:
        console.print(f"{review.key}: [yellow]pending[/yellow]")
        return
    if not review.relevant:
        console.print(f"{review.key}: [red]job {review.job_id} failed to solve[/red]")
        return
    console.print(f"{review.key}: [green]solved[/green] (job {review.job_id})")
    if review.calibration is not None:
        _print_calibration(review.calibration)
    if review.tags:
        console.print(f"Tags: {', '.join(review.tags)}")
    if review.annotations:
        _print_annotations(review.annotations)


def _print_calibration(calibration: Calibration) -> None:
    table = Table(title="Calibration", box=box.SIMPLE)
    for column in ("RA", "Dec", "Radius", "Pixscale", "Orientation", "Parity"):
        table.add_column(column, justify="right")
    table.add_row(
        f"{calibration.ra:.5f}",
        f"{calibration.dec:.5f}",
        f"{calibration.radius:.3f}",
        f"{calibration.pixscale:.3f}",
        f"{calibration.orientation:.2f}",
        f"{calibration.parity:.0f}",
    )
    console.print(table)


def _print_annotations(annotations: Sequence[Annotation]) -> None:
    table = Table(title="Objects", box=box.SIMPLE)
    table.add_column("Type")
    table.add_column("Names")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    for annotation in annotations:
        table.add_row(
            annotation.type,
            ", ".join(annotation.names),
            f"{annotation.pixelx:.1f}",
            f"{annotation.pixely:.1f}",
        )
    console.print(table)


if __name__ == "__main__":
    main()
