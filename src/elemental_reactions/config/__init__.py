from .loader import load_config
from .models import ReactionConfig
from .provider import ConfigProvider, SpecCache

__all__ = ["ConfigProvider", "ReactionConfig", "SpecCache", "load_config"]
