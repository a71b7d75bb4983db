"""PR Review Bot - reviews GitHub pull requests with a language model."""

__version__ = "1.0.0"
__description__ = "GitHub pull request review bot backed by a language model"

from .config import Settings
from .main import create_app

__all__ = ["Settings", "create_app", "__version__"]
