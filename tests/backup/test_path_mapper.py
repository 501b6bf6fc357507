"""Tests for image reference mapping."""

from pathlib import Path

import pytest

from home_inventory.backup.path_mapper import PathMapper


@pytest.fixture
def files_dir(tmp_path):
    path = tmp_path / "files"
    path.mkdir()
    return path


@pytest.fixture
def mapper(files_dir):
    return PathMapper(files_dir)


class TestExportDirection:
    """Tests for owned/foreign classification and archive names."""
    
    def test_owned_file_maps_to_images_entry(self, mapper, files_dir):
        image = files_dir / "a.jpg"
        image.write_bytes(b"aaa")
        
        assert mapper.is_owned(str(image))
        assert mapper.to_archive_name(str(image)) == "images/a.jpg"
    
    def test_nested_owned_file_uses_basename(self, mapper, files_dir):
        nested = files_dir / "thumbs" / "b.png"
        nested.parent.mkdir()
        nested.write_bytes(b"bbb")
        
        assert mapper.to_archive_name(str(nested)) == "images/b.png"
    
    def test_content_uri_is_foreign(self, mapper):
        ref = "content://media/external/images/42"
        assert not mapper.is_owned(ref)
        assert mapper.to_archive_name(ref) == ref
    
    def test_missing_file_is_foreign(self, mapper, files_dir):
        ref = str(files_dir / "gone.jpg")
        assert mapper.to_archive_name(ref) == ref
    
    def test_file_outside_root_is_foreign(self, mapper, tmp_path):
        outside = tmp_path / "elsewhere.jpg"
        outside.write_bytes(b"x")
        assert not mapper.is_owned(str(outside))
    
    def test_sibling_with_shared_prefix_is_foreign(self, mapper, tmp_path):
        """A directory named like the root plus a suffix is not inside it."""
        sibling = tmp_path / "files_other"
        sibling.mkdir()
        image = sibling / "a.jpg"
        image.write_bytes(b"x")
        
        assert not mapper.is_owned(str(image))
    
    def test_relative_path_is_foreign(self, mapper):
        assert not mapper.is_owned("files/a.jpg")
        assert not mapper.is_owned("")


class TestRestoreDirection:
    """Tests for re-homing extracted images."""
    
    def test_rehome_copies_into_storage_root(self, mapper, files_dir, tmp_path):
        temp_root = tmp_path / "restore"
        (temp_root / "images").mkdir(parents=True)
        (temp_root / "images" / "a.jpg").write_bytes(b"aaa")
        
        new_ref = mapper.rehome("images/a.jpg", temp_root)
        
        assert Path(new_ref) == (files_dir / "a.jpg").absolute()
        assert Path(new_ref).read_bytes() == b"aaa"
    
    def test_rehome_creates_storage_root(self, tmp_path):
        mapper = PathMapper(tmp_path / "not" / "yet")
        temp_root = tmp_path / "restore"
        (temp_root / "images").mkdir(parents=True)
        (temp_root / "images" / "a.jpg").write_bytes(b"aaa")
        
        new_ref = mapper.rehome("images/a.jpg", temp_root)
        
        assert Path(new_ref).read_bytes() == b"aaa"
    
    def test_foreign_reference_passes_through(self, mapper, tmp_path):
        ref = "content://media/external/images/42"
        assert mapper.rehome(ref, tmp_path) == ref
    
    def test_archive_reference_without_file_passes_through(self, mapper, tmp_path):
        assert mapper.rehome("images/missing.jpg", tmp_path) == "images/missing.jpg"
    
    def test_basename_strips_directories(self):
        assert PathMapper.basename("images/../../evil.jpg") == "evil.jpg"
        assert PathMapper.basename("images\\a.jpg") == "a.jpg"
    
    def test_is_archive_ref(self):
        assert PathMapper.is_archive_ref("images/a.jpg")
        assert not PathMapper.is_archive_ref("/data/images/a.jpg")
