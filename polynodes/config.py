from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_URL = "http://127.0.0.1:8000"


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings, read from ``POLYNODES_*`` environment variables.
    """

    service_url: str = DEFAULT_SERVICE_URL
    request_timeout: Optional[float] = None
    log_level: str = "INFO"
    seed_graph: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        timeout: Optional[float] = None
        raw_timeout = env.get("POLYNODES_REQUEST_TIMEOUT", "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning("Ignoring invalid POLYNODES_REQUEST_TIMEOUT=%r", raw_timeout)
            else:
                if timeout <= 0:
                    timeout = None

        return cls(
            service_url=env.get("POLYNODES_SERVICE_URL", "").strip() or DEFAULT_SERVICE_URL,
            request_timeout=timeout,
            log_level=env.get("POLYNODES_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            seed_graph=env.get("POLYNODES_SEED_GRAPH", "1").strip().lower() not in {"0", "false", "no", "off"},
        )


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
