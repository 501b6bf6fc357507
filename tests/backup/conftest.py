"""Shared fixtures for backup and restore tests."""

import pytest

from home_inventory.backup import BackupEngine, PathMapper, RestoreEngine
from home_inventory.models import Item, Location
from home_inventory.storage import open_repository


@pytest.fixture
def files_dir(tmp_path):
    path = tmp_path / "files"
    path.mkdir()
    return path


@pytest.fixture
def repo(tmp_path):
    repository = open_repository(tmp_path / "inventory.db")
    yield repository
    repository.close()


@pytest.fixture
def mapper(files_dir):
    return PathMapper(files_dir)


@pytest.fixture
def backup_engine(repo, mapper):
    return BackupEngine(repo, mapper)


@pytest.fixture
def temp_parent(tmp_path):
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def garage_with_drill(repo, files_dir):
    """Location Garage holding item Drill with one owned image and one foreign URI."""
    image = files_dir / "a.jpg"
    image.write_bytes(b"\xff\xd8drill-photo")
    repo.insert_location(Location(id=1, name="Garage"))
    repo.insert_item(Item(
        id=5, name="Drill", description="cordless", location_id=1, quantity=2, sort_order=7,
        image_refs=[str(image), "content://media/external/images/42"],
    ))
    return image


@pytest.fixture
def fresh_install(tmp_path, temp_parent):
    """An empty catalog and storage root, as on a newly set up device."""
    files_dir = tmp_path / "fresh_files"
    repository = open_repository(tmp_path / "fresh.db")
    engine = RestoreEngine(repository, PathMapper(files_dir), temp_parent=temp_parent)
    yield repository, files_dir, engine
    repository.close()
