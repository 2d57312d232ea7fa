from .persist import load_progress, save_progress, update_progress

__all__ = ["load_progress", "save_progress", "update_progress"]
