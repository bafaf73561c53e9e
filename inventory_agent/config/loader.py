import os
from dotenv import load_dotenv

DEFAULT_REPORT_URL = "http://metadata.google.internal/computeMetadata/v1/instance/guest-attributes"


def _int_setting(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid agent configuration: {name}={raw!r}")
    if value <= 0:
        raise RuntimeError(f"Invalid agent configuration: {name} must be positive")
    return value


def load_config():
    if os.getenv("ENV") == "development":
        load_dotenv(".env")
    else:
        load_dotenv("/etc/inventory-agent/config.env")

    return {
        "REPORT_URL": (os.getenv("REPORT_URL") or DEFAULT_REPORT_URL).rstrip("/"),
        "INVENTORY_INTERVAL": _int_setting("INVENTORY_INTERVAL", 1800),
        "HTTP_TIMEOUT": _int_setting("HTTP_TIMEOUT", 10),
        "LOG_LEVEL": os.getenv("LOG_LEVEL") or "INFO",
    }
