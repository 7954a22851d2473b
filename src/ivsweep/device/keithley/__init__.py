from .k2450 import K2450
from .k2600b import K2600B
from .visa import VisaSMU

__all__ = ["K2450", "K2600B", "VisaSMU"]
