from .config import load_config, validate_config  # noqa: F401
