import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Pull a local .env into the process environment before Settings reads it.
load_dotenv()


@dataclass(frozen=True)
class Settings:
    """
    Read-only configuration for the SOS triage app.

    Values are read from the environment once, at import time, so every
    Streamlit rerun sees the same settings.
    """

    log_level: str = os.environ.get("LOG_LEVEL", "INFO")
    log_format: str = os.environ.get(
        "LOG_FORMAT", "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )

    # Demo rescuer account. There is exactly one.
    rescuer_email: str = os.environ.get("RESCUER_EMAIL", "codewithtailor@gmail.com")
    rescuer_password: str = os.environ.get("RESCUER_PASSWORD", "mhom12345")
    rescuer_id: str = os.environ.get("RESCUER_ID", "rescuer_codewithtailor")
    rescuer_name: str = os.environ.get("RESCUER_NAME", "Code With Tailor")

    news_max_items: int = int(os.environ.get("NEWS_MAX_ITEMS", "50"))
    rumour_delay_seconds: float = float(os.environ.get("RUMOUR_DELAY_SECONDS", "1.5"))


SETTINGS = Settings()
