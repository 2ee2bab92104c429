"""Response envelopes returned to the invocation caller."""

import json
import traceback
from typing import Any, Dict

from .exceptions import UnsupportedFormatError
from .models import DispatchOutcome

SKIPPED_MESSAGE = "Skipped - invalid key format"


def _envelope(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body)}


def status_code_for(error: BaseException) -> int:
    """400 for unsupported formats, 500 for everything else."""
    return 400 if isinstance(error, UnsupportedFormatError) else 500


def build_response(outcome: DispatchOutcome) -> Dict[str, Any]:
    """Envelope for a successful or skipped dispatch."""
    if outcome.skipped or outcome.result is None:
        return _envelope(
            200,
            {
                "success": True,
                "skipped": True,
                "message": SKIPPED_MESSAGE,
                "data": {"key": outcome.key, "reason": outcome.reason},
            },
        )

    result = outcome.result
    return _envelope(
        200,
        {
            "success": True,
            "data": {
                "paths": result.paths(),
                "metadata": result.summary_metadata(),
            },
        },
    )


def build_error_response(error: BaseException, debug: bool = False) -> Dict[str, Any]:
    """Envelope for a failure; the traceback is only included in debug mode."""
    body: Dict[str, Any] = {"success": False, "error": str(error)}
    if debug:
        body["stack"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    return _envelope(status_code_for(error), body)
