"""
Range 헤더 해석기
HTTP Range 요청을 단일 바이트 구간(Single) 또는 실패 결과로 변환
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

RANGE_UNIT = 'bytes'

_SPEC_RE = re.compile(r'^(\d*)-(\d*)$', re.ASCII)

# 10**19 바이트보다 큰 파일은 없음
_MAX_DIGITS = 19
_SATURATED = 10 ** _MAX_DIGITS


@dataclass(frozen=True)
class NoRange:
    """Range 요청 없음 - 전체 파일 전송"""


@dataclass(frozen=True)
class Single:
    """단일 바이트 구간 (start, end 모두 포함)"""
    start: int
    end: int

    @property
    def chunk_size(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class RangeFailure:
    """416 으로 응답해야 하는 결과들의 공통 부모"""


@dataclass(frozen=True)
class Malformed(RangeFailure):
    reason: str = ''


@dataclass(frozen=True)
class Unsatisfiable(RangeFailure):
    pass


@dataclass(frozen=True)
class MultiRangeUnsupported(RangeFailure):
    """서로 떨어진 구간이 여러 개 - multipart 응답은 지원하지 않음"""


Outcome = Union[NoRange, Single, Malformed, Unsatisfiable, MultiRangeUnsupported]


class _MalformedSpec(ValueError):
    pass


def _to_int(digits: str) -> int:
    # 파일 크기보다 큰 값은 모두 같은 결과 - int() 자릿수 제한에 걸리지 않도록 자름
    digits = digits.lstrip('0') or '0'
    if len(digits) > _MAX_DIGITS:
        return _SATURATED
    return int(digits)


def _split_header(range_header: str) -> List[str]:
    """'bytes=...' 에서 구간 목록만 분리"""
    if '=' not in range_header:
        raise _MalformedSpec('missing "="')

    unit, _, spec = range_header.partition('=')
    if unit.strip().lower() != RANGE_UNIT:
        raise _MalformedSpec(f'unsupported unit {unit.strip()!r}')

    # 빈 항목은 무시 (RFC 9110 list 규칙)
    parts = [part.strip() for part in spec.split(',')]
    parts = [part for part in parts if part]
    if not parts:
        raise _MalformedSpec('empty range set')
    return parts


def parse_range_header(range_header: str, file_size: int) -> List[Tuple[int, int]]:
    """Range 헤더 파싱

    만족 가능한 구간만 (start, end) 로 보정하여 헤더 순서대로 반환한다.
    문법 오류는 ValueError 로 전달된다.
    """
    ranges = []

    for range_spec in _split_header(range_header):
        match = _SPEC_RE.match(range_spec)
        if match is None:
            raise _MalformedSpec(f'bad range {range_spec!r}')

        start_str, end_str = match.groups()

        if start_str == '':
            # Suffix range (e.g., '-500')
            if end_str == '':
                raise _MalformedSpec(f'bad range {range_spec!r}')
            suffix_length = _to_int(end_str)
            if suffix_length == 0 or file_size == 0:
                continue
            start = max(0, file_size - suffix_length)
            end = file_size - 1
        else:
            start = _to_int(start_str)
            if end_str == '':
                # Start range (e.g., '500-')
                end = file_size - 1
            else:
                end = _to_int(end_str)
                if start > end:
                    raise _MalformedSpec(f'bad range {range_spec!r}')

            if start >= file_size:
                continue
            # EOF 를 넘는 끝은 EOF 로 보정
            end = min(end, file_size - 1)

        ranges.append((start, end))

    return ranges


def combine_ranges(ranges: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """겹치거나 맞닿은 구간을 하나로 합침"""
    combined: List[Tuple[int, int]] = []

    for start, end in sorted(ranges):
        if combined and start <= combined[-1][1] + 1:
            last_start, last_end = combined[-1]
            combined[-1] = (last_start, max(last_end, end))
        else:
            combined.append((start, end))

    return combined


def resolve(resource_length: int, range_header: Optional[str] = None) -> Outcome:
    """파일 크기와 Range 헤더로 응답 방식을 결정"""
    if range_header is None or not range_header.strip():
        return NoRange()

    try:
        ranges = parse_range_header(range_header.strip(), resource_length)
    except _MalformedSpec as e:
        return Malformed(str(e))

    if not ranges:
        return Unsatisfiable()

    combined = combine_ranges(ranges)
    if len(combined) > 1:
        return MultiRangeUnsupported()

    start, end = combined[0]
    return Single(start, end)
