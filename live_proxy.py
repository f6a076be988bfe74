"""Owncast 라이브 스트림 프록시 - 상태 조회와 채팅 전송만 중계한다."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class UpstreamProxyFailure(IOError):
    """Owncast 호출 실패 (네트워크 오류, 2xx 가 아닌 응답, 설정 누락)"""


@dataclass(frozen=True)
class LiveStatus:
    is_live: bool
    viewers: Optional[int]
    last_connected: Optional[str]

    def to_dict(self) -> dict:
        return {
            'isLive': self.is_live,
            'viewers': self.viewers,
            'lastConnected': self.last_connected,
        }


class OwncastClient:
    """Owncast HTTP API 클라이언트"""

    def __init__(self, base_url: Optional[str], admin_token: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/') if base_url else None
        self.admin_token = admin_token
        self.timeout = timeout

    def _url(self, path: str) -> str:
        if not self.base_url:
            raise UpstreamProxyFailure("OWNCAST_URL is not configured")
        return f"{self.base_url}{path}"

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = self._url(path)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
        except httpx.HTTPError as e:
            raise UpstreamProxyFailure(f"{method} {url} failed: {e}") from e

    async def status(self) -> LiveStatus:
        """현재 방송 상태"""
        response = await self._request('GET', '/api/status')
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamProxyFailure(f"invalid status payload: {e}") from e
        if not isinstance(data, dict):
            raise UpstreamProxyFailure("invalid status payload")

        return LiveStatus(
            is_live=bool(data.get('online', False)),
            viewers=data.get('viewerCount'),
            last_connected=data.get('lastConnectTime'),
        )

    async def send_chat(self, message: Any, display_name: Any) -> bool:
        """채팅 메시지 전송 - 업스트림이 200 으로 응답했는지 반환"""
        headers = {}
        if self.admin_token:
            headers['Authorization'] = f"Bearer {self.admin_token}"

        response = await self._request(
            'POST',
            '/api/chat',
            json={'body': message, 'displayName': display_name},
            headers=headers,
        )
        logger.info("Chat message from %r relayed (%d)", display_name, response.status_code)
        return response.status_code == 200
