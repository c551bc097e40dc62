from .core.env import Env, get_env, get_env_flags, pick

CURRENT_ENVIRONMENT: Env = get_env()

__all__ = [
    "Env",
    "get_env",
    "get_env_flags",
    "pick",
    "CURRENT_ENVIRONMENT",
]
