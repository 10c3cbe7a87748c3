"""Payload sources accepted by object writes.

Every source answers ``size()`` (None when a stream cannot be probed) and
``open_body()``, a context manager yielding either the bytes themselves or
a readable binary stream positioned at the start of the payload.
"""

from __future__ import annotations

import io
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Union

from objectstore.infra.storage.client import Body
from objectstore.services.base import PreconditionViolationError


@dataclass(frozen=True, slots=True)
class InMemorySource:
    data: bytes

    def size(self) -> int:
        return len(self.data)

    @contextmanager
    def open_body(self) -> Iterator[Body]:
        yield self.data


@dataclass(frozen=True, slots=True)
class StreamSource:
    """A caller-owned stream; read from its current position, never closed."""

    stream: BinaryIO

    def size(self) -> int | None:
        if isinstance(self.stream, io.TextIOBase):
            return None
        try:
            if not self.stream.seekable():
                return None
            position = self.stream.tell()
            end = self.stream.seek(0, io.SEEK_END)
            self.stream.seek(position)
        except (AttributeError, OSError, ValueError):
            return None
        return end - position

    @contextmanager
    def open_body(self) -> Iterator[Body]:
        yield self.stream


@dataclass(frozen=True, slots=True)
class FilePathSource:
    path: Path

    def size(self) -> int:
        return self.path.stat().st_size

    @contextmanager
    def open_body(self) -> Iterator[Body]:
        with self.path.open("rb") as handle:
            yield handle


DataSource = Union[InMemorySource, StreamSource, FilePathSource]


def as_data_source(payload: Any) -> DataSource:
    if isinstance(payload, (InMemorySource, StreamSource, FilePathSource)):
        return payload
    if payload is None:
        return InMemorySource(b"")
    if isinstance(payload, str):
        return InMemorySource(payload.encode("utf-8"))
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return InMemorySource(bytes(payload))
    if isinstance(payload, os.PathLike):
        return FilePathSource(Path(payload))
    if hasattr(payload, "read"):
        return StreamSource(payload)
    raise PreconditionViolationError(
        f"Unsupported object data type: {type(payload).__name__}"
    )


def resolve_data_source(
    data: Any = None,
    *,
    option_data: Any = None,
    file: str | os.PathLike | None = None,
) -> DataSource:
    """Pick the payload from the positional argument, data option or file path.

    At most one of the three may be given; none means an empty payload.

    Raises:
        PreconditionViolationError: If data is supplied more than once.
    """
    if data is not None and option_data is not None:
        raise PreconditionViolationError(
            "Object data passed twice (argument and option)"
        )
    if data is not None and file is not None:
        raise PreconditionViolationError(
            "Object data passed twice (argument and file path)"
        )
    if option_data is not None and file is not None:
        raise PreconditionViolationError(
            "Object data passed twice (data option and file path)"
        )
    if file is not None:
        return FilePathSource(Path(file))
    return as_data_source(data if data is not None else option_data)
