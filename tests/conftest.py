"""Shared test fixtures."""

from pathlib import Path

import pytest

from minebrew.models import Command, MinebrewConfig
from tests.fakes import FakeDownloader, FakeModClient


@pytest.fixture
def game_dir(tmp_path: Path) -> Path:
    """An empty game directory."""
    directory = tmp_path / ".minecraft"
    directory.mkdir()
    return directory


@pytest.fixture
def client() -> FakeModClient:
    return FakeModClient()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def make_config(game_dir: Path):
    """Factory for configs pointing at the temporary game directory."""

    def _make(command: Command = Command.INSTALL, queries=None, target: str = "1.19"):
        return MinebrewConfig(
            command=command,
            target=target,
            directory=game_dir,
            queries=list(queries or []),
            retry_delay=0.0,
        )

    return _make
