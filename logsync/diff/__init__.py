from .engine import compute_new_lines

__all__ = ["compute_new_lines"]
