from __future__ import annotations

import logging
from typing import NoReturn, Optional, Tuple

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from .. import codec, compositor, formats
from ..config import Settings, get_settings
from ..errors import ImageProcessingError
from ..origin import fetch_origin
from ..schemas import PixelDimensionsResponse, ProcessImageParams
from ..transform import PixelSize, Transform, mode_name

logger = logging.getLogger(__name__)

VALID_EXTENSIONS = ("jpg", "jpeg", "png")

router = APIRouter(tags=["images"])


def get_image_params(
    mode: str = Query(..., description="fill, fit, fit_width, fit_height or limit"),
    width: int = Query(0),
    height: int = Query(0),
    dx: float = Query(0.0),
    dy: float = Query(0.0),
    scale: float = Query(1.0),
    quality: Optional[int] = Query(None),
    output_format: Optional[str] = Query(None, alias="format"),
    bg: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
) -> ProcessImageParams:
    """Collect and validate the query parameters shared by the image routes."""

    try:
        params = ProcessImageParams(
            mode=mode,
            width=width,
            height=height,
            dx=dx,
            dy=dy,
            scale=scale,
            quality=settings.default_quality if quality is None else quality,
            format=output_format,
            bg=bg,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=[
                {"loc": list(error["loc"]), "msg": error["msg"]} for error in exc.errors()
            ],
        ) from exc

    if params.scale > settings.max_scale:
        raise HTTPException(
            status_code=400,
            detail=f"scale must be a non-zero number up to {settings.max_scale:g}",
        )

    return params


def _raise_http_error(exc: ImageProcessingError) -> NoReturn:
    if exc.http_status >= 500:
        logger.error("Image processing failed: %s", exc)
    else:
        logger.warning("Rejected image request: %s", exc)

    raise HTTPException(status_code=exc.http_status, detail=str(exc)) from exc


def _process_image(
    data: bytes,
    params: ProcessImageParams,
    requested_format: Optional[str],
    settings: Settings,
) -> Tuple[bytes, formats.OutputFormat]:
    try:
        transform_mode = params.transform_mode()
        output_format = formats.resolve_output_format(requested_format, data, params.quality)
        image = codec.decode(data)
        transform = Transform.from_pixel_size(PixelSize(image.width, image.height), transform_mode)
        output = compositor.composite(
            image,
            transform,
            output_format,
            params.bg,
            scale=params.scale,
            offset=params.offset(),
            resample=codec.resample_filter(settings.resample_filter),
            max_dimension=settings.max_dimension,
        )
    except ImageProcessingError as exc:
        _raise_http_error(exc)

    logger.info(
        "Processed %dx%d image with mode %s into %d bytes of %s",
        image.width,
        image.height,
        mode_name(transform_mode),
        len(output),
        output_format.name,
    )
    return output, output_format


def _image_response(output: bytes, output_format: formats.OutputFormat, settings: Settings) -> Response:
    headers = {"Cache-Control": f"public, max-age={settings.cache_max_age}"}
    return Response(content=output, media_type=output_format.media_type, headers=headers)


@router.get("/images/{name}.{ext}")
def get_processed_image(
    name: str,
    ext: str,
    origin: str = Query(..., description="URL of the source image"),
    params: ProcessImageParams = Depends(get_image_params),
    settings: Settings = Depends(get_settings),
):
    """Fetch ``origin`` and return it resized as ``ext``."""

    extension = ext.lower()
    if extension not in VALID_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"image .extension must be one of {', '.join(VALID_EXTENSIONS)}",
        )

    try:
        data = fetch_origin(origin, settings)
    except ImageProcessingError as exc:
        _raise_http_error(exc)

    output, output_format = _process_image(data, params, extension, settings)
    return _image_response(output, output_format, settings)


@router.post("/images/process")
async def process_uploaded_image(
    file: UploadFile = File(...),
    params: ProcessImageParams = Depends(get_image_params),
    settings: Settings = Depends(get_settings),
):
    """Resize an uploaded image; the output format defaults to the input's."""

    data = await file.read(settings.max_origin_bytes + 1)
    if len(data) > settings.max_origin_bytes:
        logger.warning("Rejected upload larger than %d bytes", settings.max_origin_bytes)
        raise HTTPException(
            status_code=413,
            detail=f"uploaded image exceeds {settings.max_origin_bytes} bytes",
        )

    output, output_format = await run_in_threadpool(
        _process_image, data, params, params.format, settings
    )
    return _image_response(output, output_format, settings)


@router.get("/dimensions", response_model=PixelDimensionsResponse)
def get_dimensions(
    input_width: int = Query(..., gt=0),
    input_height: int = Query(..., gt=0),
    params: ProcessImageParams = Depends(get_image_params),
):
    """Return the canvas, output size and origin without touching any pixels."""

    try:
        transform_mode = params.transform_mode()
        dimensions = Transform.from_pixel_size(
            PixelSize(input_width, input_height), transform_mode
        ).pixel_dimensions(params.scale, params.offset())
    except ImageProcessingError as exc:
        _raise_http_error(exc)

    return PixelDimensionsResponse(mode=mode_name(transform_mode), **dimensions.as_dict())
