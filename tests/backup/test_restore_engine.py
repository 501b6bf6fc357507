"""Tests for RestoreEngine."""

import io
import json
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from home_inventory.backup import BackupErrorKind, RestoreEngine
from home_inventory.backup.errors import PathTraversalError
from home_inventory.backup.restore_engine import confined_path, extraction_area
from home_inventory.models import Item, Location


def make_archive(entries):
    out = io.BytesIO()
    with zipfile.ZipFile(out, 'w') as zf:
        for name, data in entries:
            zf.writestr(name, data)
    out.seek(0)
    return out


def manifest_json(locations=(), items=()):
    return json.dumps({
        "version": 1,
        "timestamp": 1700000000000,
        "locations": list(locations),
        "items": list(items),
    })


GARAGE = {"id": 1, "name": "Garage"}
DRILL = {
    "id": 5, "name": "Drill", "quantity": 2, "locationId": 1,
    "imageRefs": ["images/a.jpg", "content://media/external/images/42"],
}


class BrokenItemStorage:
    """Accepts locations but fails every item write."""
    
    def __init__(self):
        self.locations = []
    
    def get_all_locations(self):
        return list(self.locations)
    
    def get_all_items(self):
        return []
    
    def snapshot(self):
        return self.get_all_locations(), self.get_all_items()
    
    def insert_location(self, location):
        self.locations.append(location)
        return True
    
    def insert_item(self, item):
        raise RuntimeError("disk full")


class TestRoundTrip:
    """Backup on one catalog, restore into another."""
    
    def test_restore_into_fresh_install(self, backup_engine, garage_with_drill, fresh_install):
        repository, files_dir, engine = fresh_install
        archive = io.BytesIO()
        assert backup_engine.perform_backup(archive).ok
        archive.seek(0)
        
        result = engine.perform_restore(archive)
        
        assert result.ok
        assert result.message == "Restore completed successfully"
        assert result.stats == {
            'locations_inserted': 1,
            'locations_skipped': 0,
            'items_inserted': 1,
            'items_skipped': 0,
            'images': 1,
        }
        assert repository.get_all_locations() == [Location(id=1, name="Garage")]
        drill = repository.get_item(5)
        assert drill.name == "Drill"
        assert drill.description == "cordless"
        assert drill.quantity == 2
        assert drill.sort_order == 7
        assert drill.location_id == 1
        restored_image = Path(drill.image_refs[0])
        assert restored_image == (files_dir / "a.jpg").absolute()
        assert restored_image.read_bytes() == garage_with_drill.read_bytes()
        assert drill.image_refs[1] == "content://media/external/images/42"
    
    def test_restore_from_path(self, backup_engine, garage_with_drill, fresh_install, tmp_path):
        repository, _, engine = fresh_install
        target = tmp_path / "backup.zip"
        backup_engine.perform_backup(target)
        
        result = engine.perform_restore(target)
        
        assert result.ok
        assert repository.get_item(5) is not None
    
    def test_restoring_twice_skips_existing_records(self, fresh_install):
        repository, _, engine = fresh_install
        data = make_archive([("inventory.json", manifest_json([GARAGE], [DRILL]))]).getvalue()
        
        engine.perform_restore(io.BytesIO(data))
        result = engine.perform_restore(io.BytesIO(data))
        
        assert result.ok
        assert result.stats['locations_skipped'] == 1
        assert result.stats['items_skipped'] == 1
        assert len(repository.get_all_items()) == 1
    
    def test_existing_records_are_not_overwritten(self, fresh_install):
        """Conflicting ids keep the local row; restored items join the existing location."""
        repository, _, engine = fresh_install
        repository.insert_location(Location(id=1, name="Kitchen"))
        
        result = engine.perform_restore(make_archive([
            ("inventory.json", manifest_json([GARAGE], [DRILL])),
        ]))
        
        assert result.ok
        assert repository.get_location(1).name == "Kitchen"
        assert repository.get_item(5).location_id == 1
    
    def test_image_missing_from_archive_keeps_reference(self, fresh_install):
        repository, _, engine = fresh_install
        
        result = engine.perform_restore(make_archive([
            ("inventory.json", manifest_json([GARAGE], [DRILL])),
        ]))
        
        assert result.ok
        assert result.stats['images'] == 0
        assert repository.get_item(5).image_refs[0] == "images/a.jpg"
    
    def test_manifest_after_images(self, fresh_install):
        """Entry order inside the archive does not matter."""
        repository, files_dir, engine = fresh_install
        
        result = engine.perform_restore(make_archive([
            ("images/a.jpg", b"aaa"),
            ("inventory.json", manifest_json([GARAGE], [DRILL])),
        ]))
        
        assert result.ok
        assert (files_dir / "a.jpg").read_bytes() == b"aaa"
    
    def test_legacy_single_image_manifest(self, fresh_install):
        repository, files_dir, engine = fresh_install
        legacy = {"id": 7, "name": "Saw", "locationId": 1, "imageUri": "images/saw.jpg"}
        
        result = engine.perform_restore(make_archive([
            ("inventory.json", manifest_json([GARAGE], [legacy])),
            ("images/saw.jpg", b"saw"),
        ]))
        
        assert result.ok
        assert repository.get_item(7).image_refs == [str((files_dir / "saw.jpg").absolute())]


class TestRejectedArchives:
    """Failures are reported as tagged results and clean up after themselves."""
    
    def test_path_traversal(self, fresh_install, tmp_path, temp_parent):
        repository, _, engine = fresh_install
        
        result = engine.perform_restore(make_archive([
            ("inventory.json", manifest_json([GARAGE], [DRILL])),
            ("../../evil.txt", b"owned"),
        ]))
        
        assert result.error is BackupErrorKind.PATH_TRAVERSAL
        assert not (tmp_path / "evil.txt").exists()
        assert list(temp_parent.iterdir()) == []
        assert repository.get_all_locations() == []
    
    def test_absolute_entry_name(self, fresh_install):
        _, _, engine = fresh_install
        result = engine.perform_restore(make_archive([("/etc/evil", b"x")]))
        assert result.error is BackupErrorKind.PATH_TRAVERSAL
    
    def test_manifest_missing(self, fresh_install, temp_parent):
        _, _, engine = fresh_install
        
        result = engine.perform_restore(make_archive([("images/a.jpg", b"aaa")]))
        
        assert result.error is BackupErrorKind.MANIFEST_MISSING
        assert list(temp_parent.iterdir()) == []
    
    def test_manifest_parse_error(self, fresh_install, temp_parent):
        repository, _, engine = fresh_install
        
        result = engine.perform_restore(make_archive([("inventory.json", "{not json")]))
        
        assert result.error is BackupErrorKind.MANIFEST_PARSE_ERROR
        assert repository.get_all_items() == []
        assert list(temp_parent.iterdir()) == []
    
    def test_corrupt_container(self, fresh_install, temp_parent):
        _, _, engine = fresh_install
        
        result = engine.perform_restore(io.BytesIO(b"this is not a zip archive"))
        
        assert result.error is BackupErrorKind.IO_FAILURE
        assert list(temp_parent.iterdir()) == []
    
    def test_missing_source_file(self, fresh_install, tmp_path):
        _, _, engine = fresh_install
        result = engine.perform_restore(tmp_path / "nowhere.zip")
        assert result.error is BackupErrorKind.SOURCE_UNAVAILABLE
    
    def test_closed_source_stream(self, fresh_install):
        _, _, engine = fresh_install
        stream = io.BytesIO()
        stream.close()
        assert engine.perform_restore(stream).error is BackupErrorKind.SOURCE_UNAVAILABLE
    
    def test_storage_write_failure_reports_progress(self, mapper, temp_parent):
        engine = RestoreEngine(BrokenItemStorage(), mapper, temp_parent=temp_parent)
        
        result = engine.perform_restore(make_archive([
            ("inventory.json", manifest_json([GARAGE], [DRILL])),
        ]))
        
        assert result.error is BackupErrorKind.STORAGE_WRITE_FAILED
        assert "disk full" in result.message
        assert result.stats['locations_inserted'] == 1
        assert result.stats['items_inserted'] == 0
        assert list(temp_parent.iterdir()) == []


class TestConfinement:
    """Tests for extraction helpers."""
    
    def test_confined_path_inside_root(self, tmp_path):
        root = tmp_path.resolve()
        assert confined_path(root, "images/a.jpg") == root / "images" / "a.jpg"
    
    @pytest.mark.parametrize("name", ["../x", "images/../../x", "/abs", "", "a\x00b"])
    def test_confined_path_rejects_escapes(self, tmp_path, name):
        with pytest.raises(PathTraversalError):
            confined_path(tmp_path.resolve(), name)
    
    def test_extraction_area_removed_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with extraction_area(tmp_path) as root:
                (root / "file").write_bytes(b"x")
                raise RuntimeError("boom")
        assert not root.exists()


class TestCleanupFailures:
    """Failures outside the records themselves."""
    
    def test_image_copy_failure_is_io_failure(self, fresh_install):
        _, _, engine = fresh_install
        archive = make_archive([
            ("inventory.json", manifest_json([GARAGE], [DRILL])),
            ("images/a.jpg", b"aaa"),
        ])
        
        with patch("home_inventory.backup.path_mapper.shutil.copyfile", side_effect=OSError("no space")):
            result = engine.perform_restore(archive)
        
        assert result.error is BackupErrorKind.IO_FAILURE
        assert result.stats['locations_inserted'] == 1
    
    def test_cleanup_failure_does_not_change_outcome(self, fresh_install, caplog):
        repository, _, engine = fresh_install
        archive = make_archive([("inventory.json", manifest_json([GARAGE]))])
        
        with patch("home_inventory.backup.restore_engine.shutil.rmtree", side_effect=OSError("busy")):
            result = engine.perform_restore(archive)
        
        assert result.ok
        assert "Could not remove extraction directory" in caplog.text
        assert repository.get_location(1).name == "Garage"
