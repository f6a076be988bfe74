"""
Range 응답 생성기
해석된 Range 결과를 200/206/416 응답으로 만들고 파일 바이트를 조금씩 전송
"""

import logging
from typing import BinaryIO, Dict, Optional, Tuple

from starlette.concurrency import run_in_threadpool
from starlette.responses import PlainTextResponse, Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from byte_source import ByteSource
from range_resolver import NoRange, Outcome, RangeFailure, Single

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
NOT_SATISFIABLE_MESSAGE = 'Requested Range Not Satisfiable'


class StreamingIOFailure(Exception):
    """파일을 읽는 도중 발생한 I/O 오류"""


class ByteWindowResponse(StreamingResponse):
    """열린 파일 핸들에서 [start, start + length) 구간만 전송하는 응답

    핸들은 전송 완료, 읽기 오류, 클라이언트 연결 끊김 어느 경우에도 닫힌다.
    """

    def __init__(
        self,
        handle: BinaryIO,
        start: int,
        length: int,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        media_type: Optional[str] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.handle = handle
        self.start = start
        self.length = length
        self.chunk_size = chunk_size
        self.bytes_read = 0
        super().__init__(
            self._iter_window(),
            status_code=status_code,
            headers=headers,
            media_type=media_type,
        )

    async def _iter_window(self):
        try:
            await run_in_threadpool(self.handle.seek, self.start)
            remaining = self.length
            while remaining > 0:
                chunk = await run_in_threadpool(self.handle.read, min(self.chunk_size, remaining))
                if not chunk:
                    # 헤더 전송 이후 파일이 줄어든 경우
                    raise StreamingIOFailure(
                        f'short read at offset {self.start + self.bytes_read}, '
                        f'{remaining} of {self.length} bytes missing'
                    )
                remaining -= len(chunk)
                self.bytes_read += len(chunk)
                yield chunk
        except OSError as e:
            raise StreamingIOFailure(str(e)) from e

    def close(self):
        if not self.handle.closed:
            self.handle.close()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except StreamingIOFailure as e:
            # 상태 코드는 이미 전송됨 - 연결만 끊는다
            logger.warning("Aborting stream after %d/%d bytes: %s", self.bytes_read, self.length, e)
            raise
        finally:
            self.close()


def frame_headers(outcome: Outcome, resource_length: int) -> Tuple[int, int, int, Dict[str, str]]:
    """성공 결과에 대한 (status, start, length, headers)"""
    if isinstance(outcome, Single):
        headers = {
            'Content-Range': f'bytes {outcome.start}-{outcome.end}/{resource_length}',
            'Accept-Ranges': 'bytes',
            'Content-Length': str(outcome.chunk_size),
        }
        return 206, outcome.start, outcome.chunk_size, headers

    if isinstance(outcome, NoRange):
        headers = {
            'Content-Length': str(resource_length),
            'Accept-Ranges': 'bytes',
        }
        return 200, 0, resource_length, headers

    raise TypeError(f'not a success outcome: {outcome!r}')


def range_not_satisfiable(resource_length: int) -> Response:
    """416 응답"""
    return PlainTextResponse(
        NOT_SATISFIABLE_MESSAGE,
        status_code=416,
        headers={'Content-Range': f'bytes */{resource_length}'},
    )


def respond(
    outcome: Outcome,
    resource_length: int,
    content_type: str,
    source: ByteSource,
    name: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Response:
    """Range 해석 결과에 맞는 응답 생성

    파일은 헤더를 만들기 전에 열어 두므로 열기 실패는 StreamingIOFailure
    (500) 로 처리할 수 있다. ResourceNotFound 는 그대로 전달된다.
    """
    if isinstance(outcome, RangeFailure):
        return range_not_satisfiable(resource_length)

    status_code, start, length, headers = frame_headers(outcome, resource_length)

    try:
        handle = source.open(name)
    except (FileNotFoundError, NotADirectoryError):
        # 404 는 호출하는 쪽에서 처리
        raise
    except OSError as e:
        raise StreamingIOFailure(f'cannot open {name!r}: {e}') from e

    return ByteWindowResponse(
        handle,
        start,
        length,
        status_code=status_code,
        headers=headers,
        media_type=content_type,
        chunk_size=chunk_size,
    )


def head_response(outcome: Outcome, resource_length: int, content_type: str) -> Response:
    """HEAD 요청용 - GET 과 같은 상태/헤더, 본문 없음"""
    if isinstance(outcome, RangeFailure):
        return Response(
            status_code=416,
            headers={'Content-Range': f'bytes */{resource_length}'},
        )

    status_code, _, _, headers = frame_headers(outcome, resource_length)
    return Response(status_code=status_code, headers=headers, media_type=content_type)
