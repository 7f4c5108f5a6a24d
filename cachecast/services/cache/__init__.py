from .host import CacheHost
from .pools import CachePool, TemplatePool

__all__ = ["CacheHost", "CachePool", "TemplatePool"]
