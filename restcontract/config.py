import os
from dotenv import load_dotenv

load_dotenv()


PRODUCTION_ENVS = {"prod", "production"}


def is_production(env: str) -> bool:
    """Detect a production runtime mode from an environment name."""
    return (env or "").strip().lower() in PRODUCTION_ENVS


def _get_env() -> str:
    return (
        os.getenv('RESTCONTRACT_ENV')
        or os.getenv('ENV')
        or os.getenv('FLASK_ENV')
        or 'development'
    ).lower()


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def _get_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


class Config:
    ENV = _get_env()

    # Diagnostics (missing route definitions, malformed responses) are
    # silenced in production unless explicitly forced on
    DIAGNOSTICS_ENABLED = _get_bool('RESTCONTRACT_DIAGNOSTICS', not is_production(ENV))

    LOG_LEVEL = os.getenv('RESTCONTRACT_LOG_LEVEL', 'INFO').upper()

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    REQUEST_LOG_ENABLED = _get_bool('REQUEST_LOG_ENABLED', True)
    REQUEST_LOG_SAMPLE_RATE = _get_float('REQUEST_LOG_SAMPLE_RATE', 0.0)
    REQUEST_LOG_ENDPOINTS = [
        prefix.strip()
        for prefix in os.getenv('REQUEST_LOG_ENDPOINTS', '').split(',')
        if prefix.strip()
    ]

    @classmethod
    def cors_origins_list(cls):
        if cls.CORS_ORIGINS.strip() == '*':
            return '*'
        return [o.strip() for o in cls.CORS_ORIGINS.split(',') if o.strip()]
