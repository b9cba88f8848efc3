from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
import uvicorn

from wallter.config import settings
from wallter.errors import (
    ImageDecodeError,
    InvalidColorError,
    InvalidPaletteLength,
)
from wallter.image_io import decode_image, encode_image
from wallter.palettes.loader import list_presets, parse_theme
from wallter.palettes.theme import build_palette_from_bytes
from wallter.pipeline.theming import apply_theme

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle handler."""
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.info("WALLter ready (%d themes)", len(list_presets()))

    yield

    logger.info("Shutting down")


app = FastAPI(
    title="WALLter",
    version=VERSION,
    lifespan=lifespan,
)

# CORS
origins = settings.cors_origins.split(",") if settings.cors_origins != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Concurrency control
_semaphore = asyncio.Semaphore(settings.max_concurrent_requests)

OUTPUT_FORMATS = {
    "png": ("PNG", "image/png"),
    "jpeg": ("JPEG", "image/jpeg"),
    "webp": ("WEBP", "image/webp"),
}


def _invalid_parameter(message: str) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"error": "invalid_parameter", "message": message},
    )


@app.get("/api/health")
async def health():
    return {
        "status": "healthy",
        "version": VERSION,
    }


@app.get("/api/themes")
async def themes():
    return {"themes": list_presets()}


@app.post("/api/theme")
async def recolor(
    image: UploadFile = File(...),
    theme: Optional[str] = Form(None),
    palette: Optional[UploadFile] = File(None),
    output_format: str = Form("png"),
):
    fmt = output_format.lower()
    if fmt == "jpg":
        fmt = "jpeg"
    if fmt not in OUTPUT_FORMATS:
        raise _invalid_parameter(f"output_format must be one of {sorted(OUTPUT_FORMATS)}")

    # Resolve palette
    if palette is not None:
        try:
            resolved = build_palette_from_bytes(await palette.read())
        except InvalidPaletteLength as e:
            raise _invalid_parameter(str(e))
    elif theme:
        try:
            resolved = parse_theme(theme)
        except (InvalidColorError, InvalidPaletteLength) as e:
            raise _invalid_parameter(str(e))
    else:
        raise _invalid_parameter("Either theme or palette is required")

    if len(resolved) == 0:
        raise _invalid_parameter("Theme has no colors")

    # Read image data
    image_data = await image.read()
    if len(image_data) > settings.max_image_size:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "image_too_large",
                "message": f"Image exceeds {settings.max_image_size} byte limit.",
            },
        )

    try:
        input_array = decode_image(image_data)
    except ImageDecodeError:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "invalid_format",
                "message": "Could not decode image.",
            },
        )

    # Run transform
    try:
        async with _semaphore:
            start_time = time.time()
            output = await asyncio.get_event_loop().run_in_executor(
                None,
                lambda: apply_theme(
                    input_array,
                    resolved,
                    chunk_rows=settings.theme_chunk_rows,
                    workers=settings.theme_workers,
                ),
            )
            processing_ms = int((time.time() - start_time) * 1000)
    except Exception as e:
        logger.error("Theming failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "theming_failed",
                "message": f"Theming error: {str(e)}",
            },
        )

    pil_format, media_type = OUTPUT_FORMATS[fmt]
    return Response(
        content=encode_image(output, pil_format),
        media_type=media_type,
        headers={
            "X-Theme-Palette": ",".join(resolved.hex()),
            "X-Theme-Processing-Ms": str(processing_ms),
        },
    )


def main() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
