from .pill_regimen import AllPillRegimens

__all__ = ["AllPillRegimens"]
