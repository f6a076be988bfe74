#!/usr/bin/env python3
"""
FastAPI 기반 VOD 스트리밍 서버
비디오 목록, Range 요청 스트리밍(탐색 지원), Owncast 라이브 상태/채팅 프록시
"""

import logging
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from byte_source import AccessDenied, DirectoryByteSource, ResourceNotFound
from live_proxy import OwncastClient, UpstreamProxyFailure
from range_resolver import RangeFailure, resolve
from stream_responder import StreamingIOFailure, head_response, respond
from vod_settings import Settings

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    # 값은 검사 없이 그대로 Owncast 로 전달
    message: Any = None
    displayName: Any = None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """설정값으로 앱 생성"""
    if settings is None:
        settings = Settings()

    source = DirectoryByteSource(settings.vod_dir)
    source.ensure_root()
    owncast = OwncastClient(
        settings.owncast_url,
        settings.owncast_admin_token,
        timeout=settings.upstream_timeout,
    )

    app = FastAPI(title="VOD Range Server", description="Range 요청을 지원하는 VOD 스트리밍 서버")
    app.state.settings = settings
    app.state.source = source
    app.state.owncast = owncast

    # CORS 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Accept-Ranges", "Content-Length"],
    )

    @app.get("/api/vods")
    async def list_vods():
        """비디오 목록"""
        try:
            videos = await run_in_threadpool(source.list_videos)
        except OSError:
            logger.exception("Error reading VOD directory %s", source.root)
            return JSONResponse({'error': 'Failed to retrieve video list.'}, status_code=500)

        return [video.to_dict() for video in videos]

    async def stream_video(request: Request, name: str):
        """비디오 스트리밍 (Range 지원)"""
        try:
            file_size = await run_in_threadpool(source.size, name)
        except ResourceNotFound:
            raise HTTPException(status_code=404, detail="File not found")
        except AccessDenied:
            raise HTTPException(status_code=403, detail="Access denied")
        except OSError:
            logger.exception("Error streaming file %s", name)
            raise HTTPException(status_code=500, detail="Error streaming video")

        range_header = request.headers.get('range')
        outcome = resolve(file_size, range_header)

        if isinstance(outcome, RangeFailure):
            logger.info("Range error for %s: %r (header %r, file_size: %d)",
                        name, outcome, range_header, file_size)
        else:
            logger.debug("%s %s: %r (file_size: %d)", request.method, name, outcome, file_size)

        if request.method == 'HEAD':
            return head_response(outcome, file_size, settings.content_type)

        try:
            return respond(
                outcome,
                file_size,
                settings.content_type,
                source,
                name,
                chunk_size=settings.chunk_size,
            )
        except (ResourceNotFound, FileNotFoundError):
            raise HTTPException(status_code=404, detail="File not found")
        except StreamingIOFailure:
            logger.exception("Error streaming file %s", name)
            raise HTTPException(status_code=500, detail="Error streaming video")

    @app.api_route("/api/vods/stream/{filename}", methods=["GET", "HEAD"])
    async def stream_vod(request: Request, filename: str):
        return await stream_video(request, filename)

    @app.api_route("/resource/stream/{name}", methods=["GET", "HEAD"])
    async def stream_resource(request: Request, name: str):
        return await stream_video(request, name)

    @app.get("/api/live/info")
    async def live_info():
        """HLS 주소 안내"""
        return {'hlsUrl': settings.hls_url, 'isLive': True}

    @app.get("/api/live/status")
    async def live_status():
        """Owncast 방송 상태"""
        try:
            status = await owncast.status()
        except UpstreamProxyFailure as e:
            logger.error("Error fetching Owncast status: %s", e)
            return JSONResponse({'error': 'Failed to fetch live status from Owncast'}, status_code=500)

        return status.to_dict()

    @app.post("/api/live/chat")
    async def live_chat(payload: Optional[ChatMessage] = None):
        """Owncast 채팅 전송"""
        if payload is None or not payload.message or not payload.displayName:
            return JSONResponse({'error': 'Message and displayName are required'}, status_code=400)

        try:
            sent = await owncast.send_chat(payload.message, payload.displayName)
        except UpstreamProxyFailure as e:
            logger.error("Error sending chat to Owncast: %s", e)
            return JSONResponse({'error': 'Failed to send message to stream chat.'}, status_code=500)

        return {'success': True, 'sent': sent}

    return app


def run_server(settings: Settings):
    """서버 실행"""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(settings)

    print("VOD Range Server")
    print(f"Serving VODs from: {app.state.source.root}")
    print(f"Server URL: http://{settings.host}:{settings.port}/")
    print("Features:")
    print("  - Range request streaming (/api/vods/stream/<name>)")
    print("  - VOD listing (/api/vods)")
    print(f"  - Owncast proxy ({settings.owncast_url or 'not configured'})")
    print("Press Ctrl+C to stop")

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='VOD Range Streaming Server')
    parser.add_argument('--port', '-p', type=int, help='Port to serve on (default: $PORT or 5001)')
    parser.add_argument('--host', help='Host to bind to (default: $HOST or localhost)')
    parser.add_argument('--directory', '-d', help='VOD directory (default: $VOD_DIR or ./videos)')

    args = parser.parse_args()

    overrides = {}
    if args.port is not None:
        overrides['port'] = args.port
    if args.host is not None:
        overrides['host'] = args.host
    if args.directory is not None:
        overrides['vod_dir'] = args.directory

    run_server(Settings(**overrides))
