import os
from pydantic_settings import BaseSettings


def _parse_cors_origins() -> list[str] | None:
    """Parse CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    debug: bool = False
    rate_limit: str = "30/minute"
    host: str = "0.0.0.0"
    port: int = 8000

    # Population source: CSV file with location,total_xp,compensation columns.
    # Empty means an in-memory population (filled through POST /salaries).
    population_csv: str = ""

    # Snapshot persistence (warm start between restarts)
    model_persistence: bool = True
    model_dir: str = "training/models/coherence"

    # Regression model training
    min_training_records: int = 5
    hidden_units: list[int] = [64, 16]
    learning_rate: float = 0.01
    batch_size: int = 32
    max_epochs: int = 200
    patience: int = 10
    min_delta: float = 1e-6
    validation_split: float = 0.1
    restore_best_weights: bool = False
    training_timeout_seconds: float | None = None
    training_seed: int | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "protected_namespaces": ("settings_",)}


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
