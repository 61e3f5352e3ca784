"""Image resolution: make sure the requested image is available locally."""

import logging

import httpx

from sqltestutil.errors import ImageResolutionError
from sqltestutil.infra import ImageAPI, ProgressSink
from sqltestutil.logging_schema import LogEvent

logger = logging.getLogger(__name__)


async def ensure_image(
    images: ImageAPI,
    image_ref: str,
    progress: ProgressSink | None = None,
) -> None:
    """Pull image_ref if Docker does not have it.

    Only a "not found" inspect result triggers a pull; any other inspect
    failure is raised as-is without pulling. A failed pull is not retried.

    Raises:
        ImageResolutionError: If inspect or pull fails.
    """
    try:
        existing = await images.inspect(image_ref)
    except httpx.HTTPError as e:
        raise ImageResolutionError(f"Failed to inspect image {image_ref}: {e}") from e

    if existing is not None:
        logger.debug("Image present locally: %s", image_ref)
        return

    logger.info(
        "Pulling image",
        extra={"event": LogEvent.IMAGE_PULL_STARTED, "image": image_ref},
    )
    try:
        await images.pull(image_ref, progress)
    except (httpx.HTTPError, OSError) as e:
        raise ImageResolutionError(f"Failed to pull image {image_ref}: {e}") from e
    logger.info(
        "Pulled image",
        extra={"event": LogEvent.IMAGE_PULLED, "image": image_ref},
    )
