# Models package (re-export feature modules for stable imports)
from .users.account import Account, Role
from .media.image import Image, ProcessingStatus

__all__ = [
    "Account",
    "Role",
    "Image",
    "ProcessingStatus",
]
