"""Image compression: downscale and transcode before upload.

:func:`compress_image` is a plain function over value types so that it
can be submitted unchanged to an executor.  It never raises for decode,
encode or I/O problems; those come back as an
:class:`~bucketify.errors.ImageCompressionFailure` inside a
:class:`~bucketify.models.Result`.

Output is written to a temporary file next to the target and renamed
into place only after the encoder finished, so a partially written file
is never left at the derived path.  The final path is claimed with an
exclusive create: an existing file there is never replaced, and the
output moves to the first free ``{target_id}-N`` name instead.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

from PIL import Image, ImageOps
from pillow_heif import register_heif_opener

from bucketify.errors import ImageCompressionFailure
from bucketify.models import Result
from bucketify.observability import get_logger

register_heif_opener()

log = get_logger("bucketify.image")

# Pillow encoder names for each configured output format.
_PIL_FORMATS: dict[str, str] = {
    "jpeg": "JPEG",
    "webp": "WEBP",
    "png": "PNG",
}

# Modes each encoder can write without conversion.
_WRITABLE_MODES: dict[str, frozenset[str]] = {
    "JPEG": frozenset({"RGB", "L", "CMYK"}),
    "WEBP": frozenset({"RGB", "RGBA"}),
    "PNG": frozenset({"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}),
}


@dataclass(frozen=True)
class CompressionParams:
    """Input of one compression job.

    Attributes
    ----------
    source_path:
        Image to read.
    target_id:
        File id the output is named after.
    max_width:
        Images wider than this are downscaled, keeping the aspect ratio.
    quality:
        Encoder quality for lossy formats.
    output_format:
        ``"jpeg"``, ``"webp"`` or ``"png"``.
    extension:
        Extension of the output file, without the dot.
    """

    source_path: str
    target_id: str
    max_width: int = 1080
    quality: int = 75
    output_format: str = "jpeg"
    extension: str = "jpg"


@dataclass(frozen=True)
class CompressedImage:
    """Output of a successful compression job."""

    path: str
    size_bytes: int
    width: int
    height: int


def derive_output_path(source_path: str, target_id: str, extension: str) -> str:
    """Return the sibling path ``{dir of source}/{target_id}.{extension}``.

    If that path is the source itself, ``.compressed`` is inserted before
    the extension so the original is never overwritten.
    """
    directory = os.path.dirname(source_path)
    output = os.path.join(directory, f"{target_id}.{extension}")
    if os.path.abspath(output) == os.path.abspath(source_path):
        output = os.path.join(directory, f"{target_id}.compressed.{extension}")
    return output


def compress_image(params: CompressionParams) -> Result[CompressedImage]:
    """Downscale and transcode ``params.source_path``.

    Parameters
    ----------
    params:
        The job description.

    Returns
    -------
    Result[CompressedImage]
        The written file on success, or an
        :class:`ImageCompressionFailure` carrying the decoder/encoder/I/O
        error.
    """
    output_path = derive_output_path(params.source_path, params.target_id, params.extension)
    pil_format = _PIL_FORMATS[params.output_format]
    tmp_path: str | None = None
    claimed: str | None = None

    try:
        with Image.open(params.source_path) as opened:
            image = ImageOps.exif_transpose(opened)
            image = _fit_width(image, params.max_width)
            if pil_format == "JPEG" and _has_alpha(image):
                image = _flatten(image)
            elif image.mode not in _WRITABLE_MODES[pil_format]:
                image = image.convert("RGBA" if _has_alpha(image) else "RGB")

            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{params.target_id}-",
                suffix=f".{params.extension}",
                dir=os.path.dirname(output_path) or ".",
            )
            with os.fdopen(fd, "wb") as fh:
                image.save(fh, format=pil_format, quality=params.quality, optimize=True)
            width, height = image.size

        claimed = _claim_path(output_path)
        os.replace(tmp_path, claimed)
        output_path, tmp_path, claimed = claimed, None, None
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        failure = ImageCompressionFailure(
            error=str(exc),
            context={"source_path": params.source_path, "output_path": output_path},
            cause=exc,
        )
        log.warning(
            "Image compression failed",
            extra={
                "extra_fields": {
                    "op": "compress",
                    "file_id": params.target_id,
                    "source_path": params.source_path,
                    "error": str(exc),
                }
            },
        )
        return Result.error(failure)
    finally:
        for leftover in (tmp_path, claimed):
            if leftover is not None and os.path.exists(leftover):
                os.unlink(leftover)

    size_bytes = os.path.getsize(output_path)
    log.debug(
        "Image compressed",
        extra={
            "extra_fields": {
                "op": "compress",
                "file_id": params.target_id,
                "output_path": output_path,
                "size_bytes": size_bytes,
                "width": width,
                "height": height,
            }
        },
    )
    return Result.success(
        CompressedImage(path=output_path, size_bytes=size_bytes, width=width, height=height)
    )


def _claim_path(preferred: str) -> str:
    """Create an empty file at *preferred*, or at the first free ``-N`` variant.

    The create is exclusive, so a path returned here was made by this call
    and concurrent jobs aiming at the same name each get their own file.
    """
    stem, ext = os.path.splitext(preferred)
    candidate = preferred
    n = 0
    while True:
        try:
            fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            n += 1
            candidate = f"{stem}-{n}{ext}"
            continue
        os.close(fd)
        return candidate


def _fit_width(image: Image.Image, max_width: int) -> Image.Image:
    """Downscale *image* to *max_width* if it is wider; never upscale."""
    if image.width <= max_width:
        return image
    height = max(1, round(image.height * max_width / image.width))
    return image.resize((max_width, height), Image.Resampling.LANCZOS)


def _flatten(image: Image.Image) -> Image.Image:
    """Composite a transparent image onto white for encoders without alpha."""
    rgba = image.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.split()[-1])
    return background


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
