"""
Record Sources - Typed access to the upstream graph files

The segmenter writes one file per record kind. A file starts with a single
type-tag byte and is followed by length-prefixed records:

    <uint8 type tag> { <uint32 payload length> <payload> }*

All numbers are little-endian. Strings are an int32 byte length followed by
UTF-8 bytes, with length -1 meaning null.

The type tag is checked once, up front; after that every record of the
stream is decoded with the codec of the expected kind.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Generic, Optional, Protocol, TypeVar

from ..domain.enums import RecordKind
from ..domain.models import EdgeSegment, Node, Restriction, Vertex, Way
from ..types import InvalidRecordError, RecordStreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

_TAG = struct.Struct("<B")
_LENGTH = struct.Struct("<I")
_INT32 = struct.Struct("<i")

_WAY_HEAD = struct.Struct("<qbi")          # id, clazz, flags
_WAY_TAIL = struct.Struct("<iBi")          # kmh, one_way, segment count
_SEGMENT = struct.Struct("<iiii")          # id, source, target, node count
_NODE = struct.Struct("<qdd")              # id, lon, lat
_VERTEX_HEAD = struct.Struct("<iqbi")      # id, osm_id, clazz, ref_count
_VERTEX_TAIL = struct.Struct("<ddi")       # lon, lat, restriction count
_RESTRICTION = struct.Struct("<bii")       # clazz, from, to


class RecordSource(Protocol[T_co]):
    """Stream of decoded records of one statically known kind."""

    def declared_type(self) -> int:
        """Type tag read from the head of the stream."""
        ...

    def next_record(self) -> Optional[T_co]:
        """Next record, or None once the stream is exhausted."""
        ...

    def __iter__(self) -> Iterator[T_co]:
        ...


class _PayloadReader:
    """Cursor over one record payload."""

    def __init__(self, payload: bytes):
        self.payload = payload
        self.offset = 0

    def unpack(self, fmt: struct.Struct) -> tuple:
        try:
            values = fmt.unpack_from(self.payload, self.offset)
        except struct.error as e:
            raise InvalidRecordError(f"Record payload too short at offset {self.offset}: {e}") from e
        self.offset += fmt.size
        return values

    def string(self) -> Optional[str]:
        (length,) = self.unpack(_INT32)
        if length == -1:
            return None
        if length < 0 or self.offset + length > len(self.payload):
            raise InvalidRecordError(f"Invalid string length {length} at offset {self.offset}")
        raw = self.payload[self.offset:self.offset + length]
        self.offset += length
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidRecordError(f"String is not valid UTF-8: {e}") from e

    def finish(self) -> None:
        if self.offset != len(self.payload):
            raise InvalidRecordError(
                f"Record payload has {len(self.payload) - self.offset} unread trailing bytes"
            )


def _pack_string(value: Optional[str]) -> bytes:
    if value is None:
        return _INT32.pack(-1)
    raw = value.encode("utf-8")
    return _INT32.pack(len(raw)) + raw


class RecordCodec(Generic[T]):
    """Binary layout of one record kind."""
    record_kind: RecordKind

    def decode(self, payload: bytes) -> T:
        raise NotImplementedError

    def encode(self, record: T) -> bytes:
        raise NotImplementedError


class WayCodec(RecordCodec[Way]):
    """Segmented way with its segments and their nodes."""
    record_kind = RecordKind.WAY

    def decode(self, payload: bytes) -> Way:
        reader = _PayloadReader(payload)
        way_id, clazz, flags = reader.unpack(_WAY_HEAD)
        name = reader.string()
        meta = reader.string()
        kmh, one_way, segment_count = reader.unpack(_WAY_TAIL)
        if segment_count < 0:
            raise InvalidRecordError(f"Negative segment count {segment_count} in way {way_id}")

        segments = []
        for _ in range(segment_count):
            segment_id, source_id, target_id, node_count = reader.unpack(_SEGMENT)
            if node_count < 0:
                raise InvalidRecordError(f"Negative node count {node_count} in segment {segment_id}")
            nodes = tuple(Node(*reader.unpack(_NODE)) for _ in range(node_count))
            segments.append(EdgeSegment(segment_id, source_id, target_id, nodes))
        reader.finish()

        return Way(
            id=way_id,
            clazz=clazz,
            flags=flags,
            name=name,
            meta=meta,
            kmh=kmh,
            one_way=bool(one_way),
            segments=tuple(segments),
        )

    def encode(self, record: Way) -> bytes:
        parts = [
            _WAY_HEAD.pack(record.id, record.clazz, record.flags),
            _pack_string(record.name),
            _pack_string(record.meta),
            _WAY_TAIL.pack(record.kmh, int(record.one_way), len(record.segments)),
        ]
        for segment in record.segments:
            parts.append(_SEGMENT.pack(segment.id, segment.source_id, segment.target_id, len(segment.nodes)))
            parts.extend(_NODE.pack(node.id, node.lon, node.lat) for node in segment.nodes)
        return b"".join(parts)


class VertexCodec(RecordCodec[Vertex]):
    """Vertex with optional turn restrictions."""
    record_kind = RecordKind.VERTEX

    def decode(self, payload: bytes) -> Vertex:
        reader = _PayloadReader(payload)
        vertex_id, osm_id, clazz, ref_count = reader.unpack(_VERTEX_HEAD)
        name = reader.string()
        lon, lat, restriction_count = reader.unpack(_VERTEX_TAIL)

        restrictions = None
        if restriction_count >= 0:
            restrictions = tuple(
                Restriction(*reader.unpack(_RESTRICTION)) for _ in range(restriction_count)
            )
        elif restriction_count != -1:
            raise InvalidRecordError(f"Invalid restriction count {restriction_count} in vertex {vertex_id}")
        reader.finish()

        return Vertex(
            id=vertex_id,
            clazz=clazz,
            osm_id=osm_id,
            name=name,
            ref_count=ref_count,
            lon=lon,
            lat=lat,
            restrictions=restrictions,
        )

    def encode(self, record: Vertex) -> bytes:
        restriction_count = -1 if record.restrictions is None else len(record.restrictions)
        parts = [
            _VERTEX_HEAD.pack(record.id, record.osm_id, record.clazz, record.ref_count),
            _pack_string(record.name),
            _VERTEX_TAIL.pack(record.lon, record.lat, restriction_count),
        ]
        for restriction in record.restrictions or ():
            parts.append(_RESTRICTION.pack(restriction.clazz, restriction.from_id, restriction.to_id))
        return b"".join(parts)


CODECS: dict[RecordKind, RecordCodec] = {
    RecordKind.WAY: WayCodec(),
    RecordKind.VERTEX: VertexCodec(),
}


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    """Read exactly size bytes; empty bytes only for a clean EOF."""
    data = stream.read(size)
    if len(data) in (0, size):
        return data
    chunks = [data]
    received = len(data)
    while received < size:
        chunk = stream.read(size - received)
        if not chunk:
            raise RecordStreamError(f"Unexpected end of stream: expected {size} bytes, got {received}")
        chunks.append(chunk)
        received += len(chunk)
    return b"".join(chunks)


class BinaryRecordSource(Generic[T]):
    """
    Record source over a binary stream.

    The type tag is read when the source is created. Records are decoded
    lazily, one per next_record() call.
    """

    def __init__(self, stream: BinaryIO, codec: RecordCodec[T]):
        self.stream = stream
        self.codec = codec
        self.records_read = 0

        tag = _read_exact(stream, _TAG.size)
        if not tag:
            raise RecordStreamError("Record stream is empty (missing type tag)")
        (self._declared_type,) = _TAG.unpack(tag)

    def declared_type(self) -> int:
        return self._declared_type

    def next_record(self) -> Optional[T]:
        header = _read_exact(self.stream, _LENGTH.size)
        if not header:
            return None
        (length,) = _LENGTH.unpack(header)

        payload = _read_exact(self.stream, length)
        if len(payload) != length:
            raise RecordStreamError(
                f"Unexpected end of stream in record {self.records_read + 1}: "
                f"expected {length} bytes"
            )

        record = self.codec.decode(payload)
        self.records_read += 1
        return record

    def __iter__(self) -> Iterator[T]:
        while True:
            record = self.next_record()
            if record is None:
                return
            yield record


class IterableRecordSource(Generic[T]):
    """In-memory record source declaring an arbitrary type tag."""

    def __init__(self, declared_type: int, records: Iterable[T]):
        self._declared_type = int(declared_type)
        self._records = iter(records)

    def declared_type(self) -> int:
        return self._declared_type

    def next_record(self) -> Optional[T]:
        return next(self._records, None)

    def __iter__(self) -> Iterator[T]:
        return self._records


class RecordWriter(Generic[T]):
    """Writes records in the format read by BinaryRecordSource."""

    def __init__(self, stream: BinaryIO, codec: RecordCodec[T], declared_type: Optional[int] = None):
        self.stream = stream
        self.codec = codec
        self.records_written = 0
        tag = codec.record_kind if declared_type is None else declared_type
        stream.write(_TAG.pack(int(tag)))

    def write(self, record: T) -> None:
        payload = self.codec.encode(record)
        self.stream.write(_LENGTH.pack(len(payload)))
        self.stream.write(payload)
        self.records_written += 1

    def write_all(self, records: Iterable[T]) -> int:
        for record in records:
            self.write(record)
        return self.records_written


@contextmanager
def open_record_source(path: Path, codec: RecordCodec[T]) -> Iterator[BinaryRecordSource[T]]:
    """Open a graph file as a record source, closing it afterwards."""
    logger.debug(f"Opening record stream {path}")
    with open(path, "rb") as stream:
        yield BinaryRecordSource(stream, codec)


def write_record_file(path: Path, codec: RecordCodec[T], records: Iterable[T]) -> int:
    """Write a complete graph file; returns the number of records."""
    with open(path, "wb") as stream:
        return RecordWriter(stream, codec).write_all(records)
