"""Test fixtures for kube-dup."""

from collections.abc import Generator
from pathlib import Path
import tempfile

import pytest

from fakes import FakeClient, make_deployment, make_pod


@pytest.fixture(autouse=True)
def temp_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Create temporary files for the editor inside the test directory."""
    edit_dir = tmp_path / "edit"
    edit_dir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(edit_dir))
    yield edit_dir


@pytest.fixture
def client() -> FakeClient:
    """Return a client with a Deployment and a Pod."""
    return FakeClient([make_deployment(), make_pod()])
