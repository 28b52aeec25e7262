"""URL scheme of stored files.

Builds canonical file and preview URLs from the endpoint, bucket and
file id, and parses a file URL back into its file id.  Everything here is
string templating: the server is never contacted, so
:func:`parse_file_id` is a structural check, not an existence check.
Bucket and file ids are percent-encoded as single path segments, so ids
containing ``/``, ``?`` or ``#`` survive a build and parse round trip.

Canonical layout, relative to the endpoint::

    storage/buckets/{bucket}/files/{file_id}            file URL
    storage/buckets/{bucket}/files/{file_id}/view       "view" variant
    storage/buckets/{bucket}/files/{file_id}/preview    preview URL
"""

from __future__ import annotations

from urllib.parse import quote, unquote, urlencode, urlparse

from bucketify.errors import InvalidUrlFileFailure
from bucketify.models import PreviewOptions, Result

FILE_PATH_SEGMENTS = 5
"""Number of path segments of a file URL below the endpoint."""

_VIEW_SUFFIX = "view"


def _file_path(endpoint: str, bucket_id: str, file_id: str) -> str:
    bucket, file = quote(bucket_id, safe=""), quote(file_id, safe="")
    return f"{endpoint.rstrip('/')}/storage/buckets/{bucket}/files/{file}"


def build_file_url(
    endpoint: str,
    bucket_id: str,
    file_id: str,
    project_id: str | None = None,
) -> str:
    """Return the URL of a stored file.

    Parameters
    ----------
    endpoint:
        API root URL, e.g. ``"https://cloud.appwrite.io/v1"``.
    bucket_id:
        Bucket holding the file.
    file_id:
        The file's id.
    project_id:
        When given, the ``view`` variant is built:
        ``.../files/{file_id}/view?project={project_id}``.
    """
    url = _file_path(endpoint, bucket_id, file_id)
    if project_id is None:
        return url
    return f"{url}/{_VIEW_SUFFIX}?{urlencode({'project': project_id})}"


def build_preview_url(
    endpoint: str,
    bucket_id: str,
    file_id: str,
    options: PreviewOptions | None = None,
) -> str:
    """Return the URL of a server-rendered preview of a stored image.

    Only fields present in *options* contribute to the query string, in
    the fixed order width, height, quality, format.  Without any field the
    URL carries no ``?`` at all.
    """
    url = f"{_file_path(endpoint, bucket_id, file_id)}/preview"
    if options is None:
        return url

    queries: list[str] = []
    if options.width is not None:
        queries.append(f"width={options.width}")
    if options.height is not None:
        queries.append(f"height={options.height}")
    if options.quality is not None:
        queries.append(f"quality={options.quality}")
    if options.format is not None:
        queries.append(f"format={options.format.value}")

    if not queries:
        return url
    return f"{url}?{'&'.join(queries)}"


def parse_file_id(url: str, endpoint: str) -> Result[str]:
    """Extract the file id from a file URL built for *endpoint*.

    The URL must contain *endpoint* and its path below the endpoint's own
    path must be exactly ``storage/buckets/{bucket}/files/{file_id}``,
    optionally followed by ``view``.

    Returns
    -------
    Result[str]
        The file id, or an :class:`InvalidUrlFileFailure`.
    """
    endpoint = endpoint.rstrip("/")
    if endpoint not in url:
        return Result.error(_invalid(url, "endpoint_mismatch"))

    base_segments = [s for s in urlparse(endpoint).path.split("/") if s]
    segments = [s for s in urlparse(url).path.split("/") if s]
    if segments[: len(base_segments)] != base_segments:
        return Result.error(_invalid(url, "endpoint_mismatch"))

    relative = segments[len(base_segments):]
    if len(relative) == FILE_PATH_SEGMENTS + 1 and relative[-1] == _VIEW_SUFFIX:
        relative = relative[:-1]

    if len(relative) != FILE_PATH_SEGMENTS:
        return Result.error(_invalid(url, "segment_count"))
    if relative[0] != "storage" or relative[1] != "buckets" or relative[3] != "files":
        return Result.error(_invalid(url, "unexpected_layout"))

    return Result.success(unquote(relative[4]))


def _invalid(url: str, reason: str) -> InvalidUrlFileFailure:
    return InvalidUrlFileFailure(
        error="Invalid url file",
        context={"url": url, "reason": reason},
    )
