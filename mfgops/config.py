# mfgops/config.py
import logging
import os


class Settings:
    """
    Very simple settings holder.
    Reads DATABASE_URL and friends from environment if present,
    otherwise defaults to a local sqlite file.
    """

    def __init__(self) -> None:
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///./mfgops.db")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.seed_on_startup: bool = os.getenv("SEED_ON_STARTUP", "true").lower() == "true"
        self.order_number_max_retries: int = int(os.getenv("ORDER_NUMBER_MAX_RETRIES", "3"))
        # Header set by the upstream auth proxy with the signed-in user's id
        self.user_header: str = os.getenv("USER_HEADER", "X-User-Id")


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
