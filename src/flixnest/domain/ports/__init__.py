from .addon_client import AddonClientPort

__all__ = ["AddonClientPort"]
