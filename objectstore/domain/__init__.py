from .objects import ObjectLocator, ObjectReference, ObjectVersion

__all__ = [
    "ObjectLocator",
    "ObjectReference",
    "ObjectVersion",
]
