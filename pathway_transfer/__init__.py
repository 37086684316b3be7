# pathway_transfer/__init__.py
from .utils.config import APP_VERSION

__version__ = APP_VERSION
