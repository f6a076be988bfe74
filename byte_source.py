"""
비디오 디렉토리 접근 계층
파일 크기 조회, 읽기 핸들 열기, 비디오 목록 생성
"""

import logging
import stat
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import BinaryIO, List, Protocol, Union, runtime_checkable
from urllib.parse import quote

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = ('.mp4', '.mkv', '.avi', '.mov')
STREAM_URL_PREFIX = '/api/vods/stream/'


class ResourceNotFound(LookupError):
    """요청한 파일이 없음 (404)"""


class AccessDenied(PermissionError):
    """루트 디렉토리 밖을 가리키는 이름 (403)"""


@runtime_checkable
class ByteSource(Protocol):
    """이름으로 식별되는 읽기 전용 바이트 저장소"""

    def size(self, name: str) -> int:
        """Return the current length of `name` in bytes.
        Missing resources raise ResourceNotFound.
        """
        ...

    def open(self, name: str) -> BinaryIO:
        """Open `name` for binary reading. The caller owns the handle."""
        ...


@dataclass(frozen=True)
class VideoEntry:
    id: str
    title: str
    url: str

    def to_dict(self) -> dict:
        return asdict(self)


class DirectoryByteSource:
    """로컬 디렉토리 하나를 ByteSource 로 노출"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def ensure_root(self):
        """루트 디렉토리가 없으면 생성"""
        self.root.mkdir(parents=True, exist_ok=True)

    def get_file_path(self, name: str) -> Path:
        """요청 이름을 실제 파일 경로로 변환"""
        if not name or '\x00' in name:
            raise ResourceNotFound(name)

        file_path = self.root / name.lstrip('/')

        # 경로 순회 공격 방지
        try:
            file_path = file_path.resolve()
            file_path.relative_to(self.root)
        except (ValueError, OSError):
            raise AccessDenied(name)

        return file_path

    def size(self, name: str) -> int:
        file_path = self.get_file_path(name)
        try:
            st = file_path.stat()
        except (FileNotFoundError, NotADirectoryError):
            raise ResourceNotFound(name)

        if not stat.S_ISREG(st.st_mode):
            raise ResourceNotFound(name)
        return st.st_size

    def open(self, name: str) -> BinaryIO:
        file_path = self.get_file_path(name)
        try:
            return open(file_path, 'rb')
        except (FileNotFoundError, NotADirectoryError):
            raise ResourceNotFound(name)

    def list_videos(self) -> List[VideoEntry]:
        """비디오 확장자를 가진 파일 목록"""
        videos = []

        for item in sorted(self.root.iterdir()):
            if not item.is_file():
                continue
            if item.suffix.lower() not in VIDEO_EXTENSIONS:
                continue
            videos.append(VideoEntry(
                id=item.name,
                title=item.stem,
                url=STREAM_URL_PREFIX + quote(item.name, safe=''),
            ))

        logger.debug("Listed %d videos in %s", len(videos), self.root)
        return videos
