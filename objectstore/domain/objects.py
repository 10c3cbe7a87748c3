"""Identity value objects for stored objects."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ObjectLocator:
    """Bucket and key identifying a stored object.

    Equality is structural: two locators built independently for the same
    bucket and key compare equal and hash alike.
    """

    bucket_name: str
    key: str

    def __str__(self) -> str:
        return f"{self.bucket_name}/{self.key}"


@dataclass(frozen=True, slots=True)
class ObjectVersion:
    """A specific version of an object in a versioned bucket."""

    object: ObjectLocator
    version_id: str

    @property
    def bucket_name(self) -> str:
        return self.object.bucket_name

    @property
    def key(self) -> str:
        return self.object.key

    def __str__(self) -> str:
        return f"{self.object}?versionId={self.version_id}"


ObjectReference = ObjectLocator | ObjectVersion
