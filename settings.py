import os

from dotenv import load_dotenv

load_dotenv()


def _int_setting(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}. Fix it in .env or your environment.")


# Held-Karp tables grow as 2^n * n; keep n small.
TSP_MAX_NODES = _int_setting("TSP_MAX_NODES", 20)
TSP_LOG_LEVEL = os.getenv("TSP_LOG_LEVEL", "WARNING").upper()
FLASK_SECRET_KEY = os.getenv("FLASK_SECRET_KEY")
