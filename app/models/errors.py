"""Error response builder for AuthentiCheck.

Every scan failure is rendered into the same JSON shape so the browser page can
show it in its single error banner:

.. code-block:: json

    {
      "error": {
        "message": "File is too large. Max size for Image is 10MB.",
        "code": "payload_too_large"
      },
      "scanId": "<ulid or null>"
    }

``message`` is always the user-facing banner text. ``code`` lets API clients
distinguish the failure categories without parsing the message. The response
carries ``X-AuthentiCheck-Scan-ID`` whenever a scan ID was assigned so failures
can be correlated with the structured logs.
"""

from __future__ import annotations

from typing import Optional

from fastapi.responses import JSONResponse

from app.detection.errors import DetectionError

SCAN_ID_HEADER = "X-AuthentiCheck-Scan-ID"


def build_error_response(exc: DetectionError, scan_id: Optional[str] = None) -> JSONResponse:
    """Build the JSON error response for a DetectionError.

    Args:
        exc:     The failure. Its ``status_code`` and ``code`` drive the response.
        scan_id: ULID of the scan, if one was assigned before the failure.

    Returns:
        JSONResponse with ``exc.status_code``.
    """
    response = JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {"message": exc.message, "code": exc.code},
            "scanId": scan_id,
        },
    )
    if scan_id:
        response.headers[SCAN_ID_HEADER] = scan_id
    return response
