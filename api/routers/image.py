"""
Image API Router - Upload, storage and transform endpoints

Transform endpoints share one shape:
1. Read the uploaded file(s) and parse the JSON ``options`` form field
2. Call the matching image service method
3. Return the resulting image bytes with their media type
"""

import logging
import os
import uuid
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from api.dependencies import get_app_settings, get_image_service, parse_options
from api.exceptions import safe_endpoint
from config import Settings
from core.constants import CodecConstants, StorageConstants
from core.image.converters import sniff_format
from schemas import (
    CompositeOptions,
    ConvertOptions,
    CropRegion,
    EffectsOptions,
    FlattenOptions,
    ImageMetadata,
    ImageStats,
    ResizeOptions,
    RotateOptions,
    TrimOptions,
    UploadedFile,
)
from services.image_service import ImageService

logger = logging.getLogger(__name__)

router = APIRouter()

OPTIONS_DESCRIPTION = "Operation options as JSON"


def generate_filename(original_name: Optional[str]) -> str:
    """Random file name keeping the upload's extension."""
    extension = os.path.splitext(original_name or "")[1]
    return f"{uuid.uuid4()}{extension}"


def image_response(data: bytes) -> Response:
    """Wrap encoded image bytes in a response with the matching media type."""
    fmt = sniff_format(data)
    media_type = CodecConstants.MEDIA_TYPES.get(fmt, "application/octet-stream")
    return Response(content=data, media_type=media_type)


async def store_upload(upload: UploadFile, field_name: str, files_dir: str) -> UploadedFile:
    """
    Store one upload byte-for-byte under a generated name in ``files_dir``.

    The content is not decoded, so any file type is accepted.
    """
    data = await upload.read()
    filename = generate_filename(upload.filename)

    os.makedirs(files_dir, exist_ok=True)
    path = os.path.join(files_dir, filename)
    with open(path, "xb") as f:
        f.write(data)

    logger.info(f"Stored upload {upload.filename!r} as {path}")
    return UploadedFile(
        field_name=field_name,
        original_name=upload.filename,
        content_type=upload.content_type,
        size=len(data),
        filename=filename,
        path=path,
    )


# === Upload endpoints ===


@router.post("/upload-file")
@safe_endpoint
async def upload_file(file: UploadFile = File(...)) -> UploadedFile:
    """Receive a file and describe it without storing it."""
    data = await file.read()
    return UploadedFile(
        field_name=StorageConstants.UPLOAD_FIELD,
        original_name=file.filename,
        content_type=file.content_type,
        size=len(data),
    )


@router.post("/store-file")
@safe_endpoint
async def store_file(
    file: UploadFile = File(...), settings: Settings = Depends(get_app_settings)
) -> UploadedFile:
    """Store an upload unchanged under a random name in the files directory."""
    return await store_upload(file, StorageConstants.UPLOAD_FIELD, settings.storage.files_dir)


@router.post("/store-files")
@safe_endpoint
async def store_files(
    file1: Optional[UploadFile] = File(None),
    file2: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, List[UploadedFile]]:
    """Store up to two uploads unchanged (fields file1 and file2)."""
    result: Dict[str, List[UploadedFile]] = {}
    for field_name, upload in zip(StorageConstants.MULTI_UPLOAD_FIELDS, (file1, file2)):
        if upload is not None:
            stored = await store_upload(upload, field_name, settings.storage.files_dir)
            result[field_name] = [stored]
    return result


# === Information endpoints ===


@router.post("/metadata")
@safe_endpoint
async def get_metadata(
    file: UploadFile = File(...), image_service: ImageService = Depends(get_image_service)
) -> ImageMetadata:
    """Read image metadata (format, dimensions, channels, ...)."""
    return await image_service.get_metadata(await file.read())


@router.post("/stats")
@safe_endpoint
async def get_stats(
    file: UploadFile = File(...), image_service: ImageService = Depends(get_image_service)
) -> ImageStats:
    """Compute per-channel pixel statistics."""
    return await image_service.get_stats(await file.read())


# === Transform endpoints ===


@router.post("/convert")
@safe_endpoint
async def convert_image(
    file: UploadFile = File(...),
    options: str = Form(..., description=OPTIONS_DESCRIPTION),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Convert to another format, e.g. options={"format": "webp", "options": {"quality": 80}}."""
    convert_options = parse_options(options, ConvertOptions, required=True)
    return image_response(await image_service.convert_format(await file.read(), convert_options))


@router.post("/resize")
@safe_endpoint
async def resize_image(
    file: UploadFile = File(...),
    options: Optional[str] = Form(None, description=OPTIONS_DESCRIPTION),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Resize, e.g. options={"width": 200, "fit": "contain"}."""
    resize_options = parse_options(options, ResizeOptions)
    return image_response(await image_service.resize_image(await file.read(), resize_options))


@router.post("/crop")
@safe_endpoint
async def crop_image(
    file: UploadFile = File(...),
    options: str = Form(..., description=OPTIONS_DESCRIPTION),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Extract a rectangle, options={"left", "top", "width", "height"}."""
    region = parse_options(options, CropRegion, required=True)
    return image_response(await image_service.crop_image(await file.read(), region))


@router.post("/rotate")
@safe_endpoint
async def rotate_image(
    file: UploadFile = File(...),
    options: Optional[str] = Form(None, description=OPTIONS_DESCRIPTION),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Rotate clockwise; without an angle the EXIF orientation is applied."""
    rotate_options = parse_options(options, RotateOptions)
    return image_response(await image_service.rotate_image(await file.read(), rotate_options))


@router.post("/flip-vertical")
@safe_endpoint
async def vertical_flip_image(
    file: UploadFile = File(...), image_service: ImageService = Depends(get_image_service)
) -> Response:
    return image_response(await image_service.vertical_flip_image(await file.read()))


@router.post("/flip-horizontal")
@safe_endpoint
async def horizontal_flip_image(
    file: UploadFile = File(...), image_service: ImageService = Depends(get_image_service)
) -> Response:
    return image_response(await image_service.horizontal_flip_image(await file.read()))


@router.post("/effects")
@safe_endpoint
async def set_image_effects(
    file: UploadFile = File(...),
    options: Optional[str] = Form(None, description=OPTIONS_DESCRIPTION),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Apply tonal effects (threshold, median, blur, negate, grayscale, modulate, tint)."""
    effects_options = parse_options(options, EffectsOptions)
    return image_response(
        await image_service.set_image_effects(await file.read(), effects_options)
    )


@router.post("/trim")
@safe_endpoint
async def trim_image(
    file: UploadFile = File(...),
    options: Optional[str] = Form(None, description=OPTIONS_DESCRIPTION),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Trim uniform borders, options={"threshold": 10}."""
    trim_options = parse_options(options, TrimOptions)
    return image_response(await image_service.trim_image(await file.read(), trim_options))


@router.post("/flatten")
@safe_endpoint
async def flatten_image(
    file: UploadFile = File(...),
    options: Optional[str] = Form(None, description=OPTIONS_DESCRIPTION),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Replace transparency with a background color, options={"background": "#ffffff"}."""
    flatten_options = parse_options(options, FlattenOptions)
    return image_response(
        await image_service.set_transparency_background_color(
            await file.read(), flatten_options
        )
    )


@router.post("/compose")
@safe_endpoint
async def compose_images(
    file1: UploadFile = File(..., description="Base image, resized to file2's size"),
    file2: UploadFile = File(..., description="Overlay image"),
    options: Optional[str] = Form(None, description=OPTIONS_DESCRIPTION),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Composite file2 over file1, e.g. options={"blend": "multiply"}."""
    composite_options = parse_options(options, CompositeOptions)
    return image_response(
        await image_service.compose_images(
            await file1.read(), await file2.read(), composite_options
        )
    )
