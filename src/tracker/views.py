"""Project-level views for the tracker."""

import logging
import mimetypes

from django.core.files.storage import default_storage
from django.db import DatabaseError, connection
from django.http import FileResponse, Http404, JsonResponse

logger = logging.getLogger(__name__)


def media_proxy(request, path):
    """Serve media (asset images, template PDFs) from S3 through Django."""
    if not default_storage.exists(path):
        raise Http404
    content_type, _ = mimetypes.guess_type(path)
    return FileResponse(
        default_storage.open(path),
        content_type=content_type or "application/octet-stream",
    )


def ratelimited_view(request, exception=None):
    """Return 429 with Retry-After header on rate limit."""
    response = JsonResponse(
        {"error": "Rate limit exceeded. Please try again later."},
        status=429,
    )
    response["Retry-After"] = "60"
    return response


def health_check(request):
    """Health check endpoint for monitoring and load balancers."""
    db_ok = True
    try:
        connection.ensure_connection()
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        db_ok = False

    return JsonResponse(
        {"status": "ok" if db_ok else "degraded", "db": db_ok},
        status=200 if db_ok else 503,
    )
