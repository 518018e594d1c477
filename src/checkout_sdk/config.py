"""Environment-provided configuration."""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3001
DEFAULT_RATE_LIMIT = "30/minute"
GATEWAYS = ("stripe", "simulator")


@dataclass(frozen=True)
class Settings:
    """Service settings. Values come from the environment (and ``.env``)."""

    port: int = DEFAULT_PORT
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""
    frontend_url: str = ""
    backend_url: str = f"http://localhost:{DEFAULT_PORT}"
    log_dir: str = "."
    gateway: str = "stripe"
    rate_limit: str = DEFAULT_RATE_LIMIT

    @property
    def success_url(self) -> str:
        return f"{self.backend_url}/success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.backend_url}/cancel?session_id={{CHECKOUT_SESSION_ID}}"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Load settings from the process environment.

        Args:
            env_file: Optional path to a ``.env`` file. Variables already set
                in the environment take precedence over the file.

        Raises:
            ValueError: If ``BE_PORT`` is not an integer or ``PAYMENT_GATEWAY``
                names an unknown gateway.
        """
        load_dotenv(env_file)

        raw_port = os.getenv("BE_PORT") or str(DEFAULT_PORT)
        try:
            port = int(raw_port)
        except ValueError:
            raise ValueError(f"BE_PORT must be an integer, got {raw_port!r}")

        gateway = (os.getenv("PAYMENT_GATEWAY") or "stripe").strip().lower()
        if gateway not in GATEWAYS:
            raise ValueError(f"PAYMENT_GATEWAY must be one of {GATEWAYS}, got {gateway!r}")

        backend_url = os.getenv("REACT_APP_BE_URL") or f"http://localhost:{port}"
        settings = cls(
            port=port,
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY", ""),
            stripe_publishable_key=os.getenv("STRIPE_PUBLISHABLE_KEY", ""),
            frontend_url=(os.getenv("REACT_APP_FE_URL") or "").rstrip("/"),
            backend_url=backend_url.rstrip("/"),
            log_dir=os.getenv("CALLBACK_LOG_DIR") or ".",
            gateway=gateway,
            rate_limit=os.getenv("RATE_LIMIT") or DEFAULT_RATE_LIMIT,
        )
        logger.debug(f"Loaded settings: gateway={settings.gateway} port={settings.port}")
        return settings
