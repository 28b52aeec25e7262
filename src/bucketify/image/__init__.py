"""Image pipeline: format validation, compression and operation state.

Exports
-------
is_image
    Lexical check of a path against the accepted image extensions.
compress_image
    Downscale and transcode an image to a derived sibling path.
derive_output_path
    The deterministic output path of :func:`compress_image`.
OperationStateMachine
    Track one client operation's steps and enforce valid transitions.
"""

from .compress import CompressedImage, CompressionParams, compress_image, derive_output_path
from .state import OperationStateMachine
from .validate import IMAGE_EXTENSIONS, file_extension, is_image

__all__ = [
    "IMAGE_EXTENSIONS",
    "CompressedImage",
    "CompressionParams",
    "OperationStateMachine",
    "compress_image",
    "derive_output_path",
    "file_extension",
    "is_image",
]
