"""Pick the sanitizer implementation once, from configuration."""

from __future__ import annotations

import logging
from typing import Union

from carecms.core.models import AppConfig, SanitizerBackend
from carecms.sanitize.base import Sanitizer
from carecms.sanitize.bleach_backend import BleachSanitizer
from carecms.sanitize.dom_backend import DomSanitizer

logger = logging.getLogger(__name__)

_BACKENDS: dict[SanitizerBackend, type[Sanitizer]] = {
    SanitizerBackend.BLEACH: BleachSanitizer,
    SanitizerBackend.DOM: DomSanitizer,
}


def create_sanitizer(backend: Union[SanitizerBackend, str] = SanitizerBackend.BLEACH) -> Sanitizer:
    """Return a sanitizer for the named backend.

    Raises ValueError for an unknown backend name.
    """
    sanitizer = _BACKENDS[SanitizerBackend(backend)]()
    logger.debug("Using %s sanitizer", sanitizer.name)
    return sanitizer


def sanitizer_from_config(config: AppConfig) -> Sanitizer:
    return create_sanitizer(config.sanitizer_backend)
