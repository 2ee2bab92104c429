"""Lambda entry point: one storage notification per invocation."""

import os
from functools import lru_cache
from typing import Any, Dict

from .core import DerivativeConfig, get_logger, setup_logger
from .core.dispatcher import MediaDispatcher
from .core.factories import MediaPipelineFactory
from .core.responses import build_error_response

logger = get_logger("media-derivatives.handler")


@lru_cache(maxsize=1)
def get_dispatcher() -> MediaDispatcher:
    """Build the dispatcher once per process from the environment."""
    config = DerivativeConfig.from_env()
    setup_logger(logger.name, level=config.log_level, format_type=config.log_format)
    logger.info(
        f"Configured for s3://{config.source_bucket} "
        f"(mode={config.key_mode.value}, region={config.region})"
    )
    return MediaPipelineFactory.create_dispatcher(config)


def handler(event: Any, context: Any = None) -> Dict[str, Any]:
    """Generate derivatives for the object named by ``event``."""
    try:
        dispatcher = get_dispatcher()
    except Exception as exc:  # noqa: BLE001
        logger.error(f"Lambda handler error: {exc}", exc_info=True)
        return build_error_response(
            exc, debug=os.getenv("APP_ENV", "").lower() == "development"
        )
    return dispatcher.handle(event)
