"""Shared fixtures: a VOD directory with synthetic video files."""

import pytest
from fastapi.testclient import TestClient

from vod_server import create_app
from vod_settings import Settings

VIDEO_SIZE = 1000


def make_video_bytes(size=VIDEO_SIZE):
    """Deterministic payload where every offset is distinguishable."""
    return bytes(i % 251 for i in range(size))


@pytest.fixture
def video_bytes():
    return make_video_bytes()


@pytest.fixture
def video_dir(tmp_path, video_bytes):
    root = tmp_path / "videos"
    root.mkdir()
    (root / "sample.mp4").write_bytes(video_bytes)
    (root / "my video.MOV").write_bytes(b"\x00" * 10)
    (root / "notes.txt").write_text("not a video")
    (root / "empty.mkv").write_bytes(b"")
    (root / "nested.avi").mkdir()
    return root


@pytest.fixture
def settings(video_dir):
    return Settings(vod_dir=video_dir, owncast_url=None, owncast_admin_token=None)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
