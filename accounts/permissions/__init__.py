from .roles import IsAuthenticatedUser, IsReviewer, SameVendor

__all__ = [
    "IsAuthenticatedUser",
    "IsReviewer",
    "SameVendor",
]
