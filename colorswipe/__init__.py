"""Color Swipe: swipe the way the block's colour tells you, before time runs out."""

__version__ = "1.0.0"
