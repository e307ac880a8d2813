"""
IO helpers for images, map documents and recorded capture frames.
"""

from .image_loader import load_rgba, save_rgba

__all__ = ["load_rgba", "save_rgba"]
