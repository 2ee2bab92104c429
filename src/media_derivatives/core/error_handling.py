# src/media_derivatives/core/error_handling.py

import functools
import logging
from typing import Any, Dict, List, Optional, Type

from botocore.exceptions import ClientError
from PIL import Image, UnidentifiedImageError

from .exceptions import ImageProcessingError, MediaDerivativesError, S3Error


def _client_error_code(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "Unknown")
    return type(exc).__name__


def storage_operation(error_cls: Type[S3Error], stage: str):
    """
    Decorator translating failures of a storage call into a stage error.

    Errors already belonging to the pipeline hierarchy pass through untouched;
    anything else (botocore ``ClientError`` included) is logged and re-raised
    as ``error_cls`` chained to the original exception.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__ + '.' + func.__name__)
            try:
                return func(*args, **kwargs)
            except MediaDerivativesError:
                raise
            except Exception as e:  # noqa: BLE001
                logger.error(
                    f"S3 {stage} failed in '{func.__name__}' ({_client_error_code(e)}): {e}",
                    exc_info=True
                )
                raise error_cls(f"Failed to {stage}: {e}") from e
        return wrapper
    return decorator


def image_operation(func):
    """
    Decorator translating Pillow failures into ImageProcessingError.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + '.' + func.__name__)
        try:
            return func(*args, **kwargs)
        except MediaDerivativesError:
            raise
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            logger.error(f"Image operation '{func.__name__}' failed: {e}", exc_info=True)
            raise ImageProcessingError(f"Failed to process image in {func.__name__}: {e}") from e
    return wrapper


class VariantBatch:
    """
    Context manager collecting per-variant failures of one invocation.

    Variants report failures through ``add_error``; the first one reported is
    kept so the caller can re-raise it once every variant has been attempted.
    """
    def __init__(self, operation_name: str = "Variant processing"):
        self.operation_name = operation_name
        self.errors: List[Dict[str, Any]] = []
        self.logger = logging.getLogger(self.__class__.__module__ + '.' + self.__class__.__name__)

    def __enter__(self) -> "VariantBatch":
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for variant "
                    f"'{error_detail['variant']}': {error_detail['error']}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")
        return False

    def add_error(self, variant: str, error: BaseException) -> None:
        """Record the failure of one variant."""
        self.errors.append({"variant": variant, "error": error})
        self.logger.debug(f"Error added for variant '{variant}' in {self.operation_name}: {error}")

    @property
    def first_error(self) -> Optional[BaseException]:
        return self.errors[0]["error"] if self.errors else None

    def raise_first(self) -> None:
        """Re-raise the first recorded failure, if any."""
        error = self.first_error
        if error is not None:
            raise error
