"""Tests for the directory-backed byte source."""

import pytest

from byte_source import (
    AccessDenied,
    ByteSource,
    DirectoryByteSource,
    ResourceNotFound,
    VideoEntry,
)


class TestDirectoryByteSource:

    def setup_method(self):
        self.missing = "does-not-exist.mp4"

    def test_is_byte_source(self, video_dir):
        assert isinstance(DirectoryByteSource(video_dir), ByteSource)

    def test_size(self, video_dir, video_bytes):
        source = DirectoryByteSource(video_dir)
        assert source.size("sample.mp4") == len(video_bytes)
        assert source.size("empty.mkv") == 0

    def test_size_missing(self, video_dir):
        with pytest.raises(ResourceNotFound):
            DirectoryByteSource(video_dir).size(self.missing)

    def test_size_of_directory_is_not_found(self, video_dir):
        with pytest.raises(ResourceNotFound):
            DirectoryByteSource(video_dir).size("nested.avi")

    def test_size_below_a_file_is_not_found(self, video_dir):
        with pytest.raises(ResourceNotFound):
            DirectoryByteSource(video_dir).size("sample.mp4/inner")

    def test_empty_name_is_not_found(self, video_dir):
        with pytest.raises(ResourceNotFound):
            DirectoryByteSource(video_dir).size("")

    def test_traversal_denied(self, video_dir):
        (video_dir.parent / "secret.mp4").write_bytes(b"secret")
        source = DirectoryByteSource(video_dir)
        with pytest.raises(AccessDenied):
            source.size("../secret.mp4")
        with pytest.raises(AccessDenied):
            source.open("..")

    def test_open_reads_content(self, video_dir, video_bytes):
        with DirectoryByteSource(video_dir).open("sample.mp4") as handle:
            assert handle.read() == video_bytes

    def test_open_missing(self, video_dir):
        with pytest.raises(ResourceNotFound):
            DirectoryByteSource(video_dir).open(self.missing)

    def test_ensure_root_creates_directory(self, tmp_path):
        root = tmp_path / "a" / "b"
        DirectoryByteSource(root).ensure_root()
        assert root.is_dir()


class TestListVideos:

    def test_filters_by_extension(self, video_dir):
        names = [video.id for video in DirectoryByteSource(video_dir).list_videos()]
        assert names == sorted(["empty.mkv", "my video.MOV", "sample.mp4"])

    def test_entry_fields(self, video_dir):
        videos = {video.id: video for video in DirectoryByteSource(video_dir).list_videos()}
        assert videos["my video.MOV"] == VideoEntry(
            id="my video.MOV",
            title="my video",
            url="/api/vods/stream/my%20video.MOV",
        )
        assert videos["sample.mp4"].to_dict() == {
            "id": "sample.mp4",
            "title": "sample",
            "url": "/api/vods/stream/sample.mp4",
        }

    def test_empty_directory(self, tmp_path):
        assert DirectoryByteSource(tmp_path).list_videos() == []

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            DirectoryByteSource(tmp_path / "gone").list_videos()
