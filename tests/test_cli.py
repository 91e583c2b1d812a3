"""Tests for the command-line interface."""

import io
import logging
from collections.abc import Iterator
from pathlib import Path

import numpy as np
import pytest
from astropy.io import fits
from click.testing import CliRunner

from telescope import cli
from telescope.config import Settings
from telescope.containers import AppContainer, build_container
from tests.conftest import (
    ANNOTATIONS_PAYLOAD,
    JOB_RESULTS_PAYLOAD,
    FakeAstrometryService,
)

SOLVED_STATUS = {"job_calibrations": [[1, 2]], "jobs": [555]}


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("telescope")
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def container(
    settings: Settings,
    service: FakeAstrometryService,
    monkeypatch: pytest.MonkeyPatch,
) -> AppContainer:
    fast_settings = settings.model_copy(update={"poll_interval_seconds": 0.01})
    built = build_container(fast_settings, transport=service.transport())
    monkeypatch.setattr(cli, "build_container", lambda: built)
    monkeypatch.setattr(cli.time, "sleep", lambda _seconds: None)
    return built


def test_solve_waits_for_result(
    tmp_path: Path, container: AppContainer, service: FakeAstrometryService
) -> None:
    image = tmp_path / "m42.fits"
    image.write_bytes(b"SIMPLE")
    service.respond("/upload", {"status": "success", "subid": 42})
    service.respond(
        "/submissions/42", {"job_calibrations": [], "jobs": []}, SOLVED_STATUS
    )
    service.respond("/jobs/555/info", JOB_RESULTS_PAYLOAD)

    result = CliRunner().invoke(
        cli.main, ["solve", str(image), "--key", "m42", "--wait"]
    )

    assert result.exit_code == 0, result.output
    assert "Submitted" in result.output
    assert "solved" in result.output
    assert "orion" in result.output
    assert len(service.calls("/submissions/42")) >= 2


def test_solve_url_without_wait_reports_pending(
    container: AppContainer, service: FakeAstrometryService
) -> None:
    service.respond("/url_upload", {"status": "success", "subid": 7})
    service.respond("/submissions/7", {"job_calibrations": [], "jobs": []})

    result = CliRunner().invoke(
        cli.main, ["solve", "https://example.org/m42.jpg", "--key", "m42"]
    )

    assert result.exit_code == 0, result.output
    assert "pending" in result.output


def test_solve_reports_service_errors(
    tmp_path: Path, container: AppContainer, service: FakeAstrometryService
) -> None:
    image = tmp_path / "m42.fits"
    image.write_bytes(b"SIMPLE")
    service.respond("/upload", {"status": "error", "errormessage": "quota exceeded"})

    result = CliRunner().invoke(cli.main, ["solve", str(image)])

    assert result.exit_code == 1
    assert "quota exceeded" in result.output
    assert container.transport.http_client.is_closed


def test_submission_command(
    container: AppContainer, service: FakeAstrometryService
) -> None:
    service.respond("/submissions/42", SOLVED_STATUS)

    result = CliRunner().invoke(cli.main, ["submission", "42"])

    assert result.exit_code == 0, result.output
    assert "555" in result.output


def test_job_command_with_annotations(
    container: AppContainer, service: FakeAstrometryService
) -> None:
    service.respond("/jobs/555/info", JOB_RESULTS_PAYLOAD)
    service.respond("/jobs/555/annotations", ANNOTATIONS_PAYLOAD)

    result = CliRunner().invoke(cli.main, ["job", "555", "--annotations"])

    assert result.exit_code == 0, result.output
    assert "m42.fits" in result.output
    assert "NGC 1976" in result.output


def test_header_command(tmp_path: Path) -> None:
    hdu = fits.PrimaryHDU(data=np.zeros((2, 2), dtype=np.uint8))
    hdu.header["OBSID"] = "obs-9"
    hdu.header["EXPTIME"] = 12.0
    buffer = io.BytesIO()
    hdu.writeto(buffer)
    path = tmp_path / "frame.fits"
    path.write_bytes(buffer.getvalue())

    result = CliRunner().invoke(cli.main, ["header", str(path)])

    assert result.exit_code == 0, result.output
    assert "obs-9" in result.output
    assert "12.0" in result.output


def test_header_command_rejects_non_fits(tmp_path: Path) -> None:
    path = tmp_path / "frame.png"
    path.write_bytes(b"\x89PNG")

    result = CliRunner().invoke(cli.main, ["header", str(path)])

    assert result.exit_code == 1
    assert "not a FITS file" in result.output
