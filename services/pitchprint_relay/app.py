# services/pitchprint_relay/app.py

import json
import logging
import sys
from typing import Optional

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app_platform.common.models import ErrorResp, UploadRequest, UpstreamUploadPayload

from .config import ConfigError, RelayConfig, load_config
from .signing import build_signed_payload

SIGNATURE_PATH = "/api/pitchprint/signature"
UPLOAD_PATH = "/api/pitchprint/file_upload"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

logger = logging.getLogger(__name__)


class UploadValidationError(ValueError):
    pass


def parse_upload_body(raw: bytes) -> UploadRequest:
    data = json.loads(raw.decode("utf-8"))
    try:
        return UploadRequest.model_validate(data)
    except ValidationError as e:
        raise UploadValidationError("designId, fileName and fileData are required in request body") from e


def create_app(config: RelayConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the relay app around an already-loaded config.
    `transport` replaces the network layer of the outbound client (tests).
    """
    app = FastAPI(
        title="PitchPrint Relay",
        version="0.1.0",
        redirect_slashes=False,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config

    # One pooled client for the lifetime of the process
    @app.on_event("startup")
    async def _startup() -> None:
        app.state.client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.upstream_timeout, connect=min(10.0, config.upstream_timeout)),
            transport=transport,
        )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        client: httpx.AsyncClient = app.state.client
        await client.aclose()

    # ---------- CORS ----------
    # Every response carries the CORS headers; preflight never reaches routing.
    @app.middleware("http")
    async def cors(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    # Unknown path and known path with the wrong method look the same to callers
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return Response(status_code=404)
        return JSONResponse(ErrorResp(error=str(exc.detail)).model_dump(), status_code=exc.status_code)

    # ---------- Routes ----------
    @app.get(SIGNATURE_PATH)
    async def signature():
        payload = build_signed_payload(config)
        logger.info("issued signature timestamp=%s", payload.timestamp)
        return JSONResponse(payload.model_dump())

    @app.post(UPLOAD_PATH)
    async def file_upload(request: Request):
        """
        Sign and forward a file upload to PitchPrint, relaying its status and body.
        Anything that goes wrong on our side comes back as 500 {"error": ...}.
        """
        client: httpx.AsyncClient = app.state.client
        try:
            raw = await request.body()
            logger.info("file_upload body length=%s", len(raw))
            upload = parse_upload_body(raw)

            signed = build_signed_payload(config)
            payload = UpstreamUploadPayload(**signed.model_dump(), **upload.model_dump())
            logger.info(
                "forwarding upload apiKey=%s timestamp=%s designId=%s fileName=%s fileDataLength=%s",
                payload.apiKey, payload.timestamp, payload.designId, payload.fileName, len(payload.fileData),
            )

            r = await client.post(config.upload_url, json=payload.model_dump())
            logger.info("PitchPrint responded status=%s", r.status_code)
            logger.debug("PitchPrint body: %s", r.text)
        except Exception as e:
            logger.exception("file_upload failed: %s", e)
            return JSONResponse(ErrorResp(error=str(e)).model_dump(), status_code=500)

        return Response(content=r.content, status_code=r.status_code, media_type="application/json")

    return app


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    try:
        config = load_config()
    except ConfigError as e:
        logger.critical("Fatal: %s", e)
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level)
    if config.digest == "md5":
        logger.warning("signature digest is md5; it gives no cryptographic guarantee and is kept for PitchPrint compatibility")

    logger.info("Server running on http://localhost:%s", config.port)
    logger.info("  GET  %s", SIGNATURE_PATH)
    logger.info("  POST %s", UPLOAD_PATH)
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
