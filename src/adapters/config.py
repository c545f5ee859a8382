import os

from dotenv import load_dotenv

_loaded_env_file: str | None = None


def load_env(force: bool = False) -> str | None:
    """Load environment variables from an env file, once per process.

    Defaults to config/local.env for local development.
    Set ENV_FILE to override. Variables already in the environment win.

    Returns:
        The env file that was loaded, or None if it does not exist.
    """
    global _loaded_env_file
    if _loaded_env_file is not None and not force:
        return _loaded_env_file

    env_file = os.getenv("ENV_FILE", "config/local.env")
    if not os.path.exists(env_file):
        return None
    load_dotenv(env_file, override=False)
    _loaded_env_file = env_file
    return env_file
