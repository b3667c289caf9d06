"""
Detection overlay drawing.
"""

from .renderer import COLOR_OTHER, COLOR_PERSON, OverlayRenderer
from .surface import DrawingSurface

__all__ = ["OverlayRenderer", "DrawingSurface", "COLOR_PERSON", "COLOR_OTHER"]
