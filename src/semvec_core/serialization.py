"""
semvec_core/serialization.py - Binary and plain-text vector store files

BINARY FORMAT:
    header   string "-dimensions", int32 dimension,
             string "-vectortype", string type name
    records  string identifier, components

    Strings are a variable-length length prefix (7 bits per byte, high bit
    set on all but the last byte) followed by UTF-8 bytes. Integers are
    4-byte big-endian. Components:

        REAL     dimension x float32 bit patterns (big-endian)
        COMPLEX  2 x dimension x float32, real/imaginary interleaved
        BINARY   dimension / 64 x 64-bit words (big-endian), bit j of word
                 w is component 64w + j

    A file without the "-vectortype" token is read as REAL.

TEXT FORMAT:
    -dimensions|<n>|-vectortype|<TYPE>
    identifier|c1|c2|...

    REAL and COMPLEX components are decimal floats (complex interleaved),
    BINARY components are 0/1. Identifiers may contain "|" but not line
    breaks. The binary format round-trips bit-exactly; the text format
    round-trips to float32 precision.

Writes go to a temporary sibling file that replaces the target only on
success, so an interrupted run does not leave a partial file under the
final name.
"""
from __future__ import annotations

import logging
import os
import struct
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO, TextIO

import numpy as np
import torch

from .errors import FormatError
from .progress import NullProgress, ProgressReporter
from .store import VectorStoreRAM
from .types import BINARY_WORD_BITS, IndexFileFormat, TrainingConfig, VectorType
from .vectors import Vector, vector_from_components

logger = logging.getLogger(__name__)

DIMENSIONS_TOKEN = "-dimensions"
VECTORTYPE_TOKEN = "-vectortype"


def format_for_path(path: str | Path) -> IndexFileFormat:
    return "text" if Path(path).suffix == ".txt" else "binary"


def _component_count(vector_type: VectorType, dimension: int) -> int:
    if vector_type == VectorType.COMPLEX:
        return 2 * dimension
    return dimension


# =============================================================================
# PRIMITIVE ENCODING
# =============================================================================

def encode_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    length = len(raw)
    prefix = bytearray()
    while length >= 0x80:
        prefix.append((length & 0x7F) | 0x80)
        length >>= 7
    prefix.append(length)
    return bytes(prefix) + raw


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise FormatError(f"Unexpected end of file (wanted {size} bytes, got {len(data)})")
    return data


def read_string(stream: BinaryIO) -> str | None:
    """Read one length-prefixed string; None at a clean end of file."""
    first = stream.read(1)
    if not first:
        return None
    length = 0
    shift = 0
    byte = first[0]
    while True:
        length |= (byte & 0x7F) << shift
        if byte < 0x80:
            break
        shift += 7
        byte = _read_exact(stream, 1)[0]
    try:
        return _read_exact(stream, length).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError(f"Identifier is not valid UTF-8: {exc}") from exc


def encode_components(vector: Vector) -> bytes:
    components = vector.components()
    if vector.vector_type == VectorType.BINARY:
        bits = components.reshape(-1, BINARY_WORD_BITS).numpy()
        words = np.packbits(bits, axis=1, bitorder="little").view("<u8").reshape(-1)
        return words.astype(">u8").tobytes()
    return components.numpy().astype(">f4").tobytes()


def decode_components(
    vector_type: VectorType, dimension: int, payload: bytes
) -> Vector:
    if vector_type == VectorType.BINARY:
        words = np.frombuffer(payload, dtype=">u8").astype("<u8")
        bits = np.unpackbits(
            words.view(np.uint8).reshape(-1, 8), axis=1, bitorder="little"
        ).reshape(-1)
        return vector_from_components(vector_type, dimension, torch.from_numpy(bits.astype(bool)))
    values = np.frombuffer(payload, dtype=">f4").astype(np.float32)
    return vector_from_components(vector_type, dimension, torch.from_numpy(values))


def _record_size(vector_type: VectorType, dimension: int) -> int:
    if vector_type == VectorType.BINARY:
        return dimension // 8
    return 4 * _component_count(vector_type, dimension)


def _format_component(value: float | bool, vector_type: VectorType) -> str:
    if vector_type == VectorType.BINARY:
        return "1" if value else "0"
    return repr(float(value))


# =============================================================================
# WRITING
# =============================================================================

class VectorStoreWriter:
    """Streaming writer for one vector store file.

    Example:
        with VectorStoreWriter("docvectors.bin", VectorType.REAL, 200) as writer:
            for name, vector in produce():
                writer.write(name, vector)
    """

    def __init__(
        self,
        path: str | Path,
        vector_type: VectorType | str,
        dimension: int,
        file_format: IndexFileFormat | None = None,
        progress: ProgressReporter | None = None,
    ):
        self.path = Path(path)
        self.vector_type = VectorType.parse(vector_type)
        self.dimension = dimension
        self.file_format = file_format or format_for_path(self.path)
        self.progress = progress or NullProgress()
        self.count = 0
        self._tmp_path = self.path.with_name(self.path.name + ".tmp")
        self._stream: BinaryIO | TextIO | None = None

    def __enter__(self) -> VectorStoreWriter:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Writing vectors to %s", self.path)
        if self.file_format == "text":
            self._stream = open(self._tmp_path, "w", encoding="utf-8", newline="\n")
            self._stream.write(
                f"{DIMENSIONS_TOKEN}|{self.dimension}|"
                f"{VECTORTYPE_TOKEN}|{self.vector_type.name}\n"
            )
        else:
            self._stream = open(self._tmp_path, "wb")
            self._stream.write(encode_string(DIMENSIONS_TOKEN))
            self._stream.write(struct.pack(">i", self.dimension))
            self._stream.write(encode_string(VECTORTYPE_TOKEN))
            self._stream.write(encode_string(self.vector_type.name))
        return self

    def write(self, identifier: str, vector: Vector) -> None:
        if self._stream is None:
            raise RuntimeError("VectorStoreWriter used outside its context")
        if vector.vector_type != self.vector_type or vector.dimension != self.dimension:
            raise FormatError(
                f"Cannot write {vector.vector_type.value}/{vector.dimension} vector "
                f"{identifier!r} into a {self.vector_type.value}/{self.dimension} file"
            )
        self.progress.report("vectors written", self.count)
        if self.file_format == "text":
            if "\n" in identifier or "\r" in identifier:
                raise FormatError(f"Identifier {identifier!r} cannot be written to a text file")
            components = "|".join(
                _format_component(c, self.vector_type) for c in vector.components().tolist()
            )
            self._stream.write(f"{identifier}|{components}\n")
        else:
            self._stream.write(encode_string(identifier))
            self._stream.write(encode_components(vector))
        self.count += 1

    def __exit__(self, exc_type, exc, tb) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()
        if exc_type is None:
            os.replace(self._tmp_path, self.path)
            logger.info("Finished writing %d vectors to %s", self.count, self.path)
        else:
            logger.error("Writing %s failed after %d vectors: %s", self.path, self.count, exc)
            self._tmp_path.unlink(missing_ok=True)


def write_vectors(
    path: str | Path,
    store: VectorStoreRAM,
    file_format: IndexFileFormat | None = None,
    progress: ProgressReporter | None = None,
) -> Path:
    """Write every vector of ``store`` to ``path``."""
    with VectorStoreWriter(
        path, store.vector_type, store.dimension, file_format, progress
    ) as writer:
        for identifier, vector in store.all():
            writer.write(identifier, vector)
    return writer.path


# =============================================================================
# READING
# =============================================================================

class VectorStoreReader:
    """Lazy reader over a vector store file.

    The header is parsed on open; iteration yields (identifier, vector)
    pairs and may be repeated.
    """

    def __init__(self, path: str | Path, file_format: IndexFileFormat | None = None):
        self.path = Path(path)
        self.file_format = file_format or format_for_path(self.path)
        if self.file_format == "text":
            with open(self.path, encoding="utf-8") as stream:
                self.dimension, self.vector_type = self._parse_text_header(stream.readline())
        else:
            with open(self.path, "rb") as stream:
                self.dimension, self.vector_type, _ = self._read_binary_header(stream)

    def _parse_text_header(self, line: str) -> tuple[int, VectorType]:
        parts = line.rstrip("\n").split("|")
        if len(parts) < 2 or parts[0] != DIMENSIONS_TOKEN:
            raise FormatError(f"{self.path}: missing {DIMENSIONS_TOKEN} header")
        dimension = self._parse_dimension(parts[1])
        vector_type = VectorType.REAL
        if len(parts) >= 4 and parts[2] == VECTORTYPE_TOKEN:
            vector_type = self._parse_type(parts[3])
        return dimension, vector_type

    def _read_binary_header(self, stream: BinaryIO) -> tuple[int, VectorType, str | None]:
        """Returns dimension, type, and the first identifier if already consumed."""
        if read_string(stream) != DIMENSIONS_TOKEN:
            raise FormatError(f"{self.path}: missing {DIMENSIONS_TOKEN} header")
        (dimension,) = struct.unpack(">i", _read_exact(stream, 4))
        dimension = self._parse_dimension(dimension)
        token = read_string(stream)
        if token == VECTORTYPE_TOKEN:
            type_name = read_string(stream)
            if type_name is None:
                raise FormatError(f"{self.path}: truncated header")
            return dimension, self._parse_type(type_name), None
        return dimension, VectorType.REAL, token

    def _parse_dimension(self, raw: str | int) -> int:
        try:
            dimension = int(raw)
        except ValueError:
            raise FormatError(f"{self.path}: bad dimension {raw!r}") from None
        if dimension <= 0:
            raise FormatError(f"{self.path}: bad dimension {dimension}")
        return dimension

    def _parse_type(self, name: str) -> VectorType:
        try:
            return VectorType(name.lower())
        except ValueError:
            raise FormatError(f"{self.path}: unknown vector type {name!r}") from None

    def __iter__(self) -> Iterator[tuple[str, Vector]]:
        if self.file_format == "text":
            yield from self._iter_text()
        else:
            yield from self._iter_binary()

    def _iter_binary(self) -> Iterator[tuple[str, Vector]]:
        size = _record_size(self.vector_type, self.dimension)
        with open(self.path, "rb") as stream:
            _, _, identifier = self._read_binary_header(stream)
            if identifier is None:
                identifier = read_string(stream)
            while identifier is not None:
                payload = _read_exact(stream, size)
                yield identifier, decode_components(self.vector_type, self.dimension, payload)
                identifier = read_string(stream)

    def _iter_text(self) -> Iterator[tuple[str, Vector]]:
        count = _component_count(self.vector_type, self.dimension)
        with open(self.path, encoding="utf-8") as stream:
            stream.readline()
            for line_number, line in enumerate(stream, start=2):
                line = line.rstrip("\n")
                if not line:
                    continue
                parts = line.rsplit("|", count)
                if len(parts) != count + 1:
                    raise FormatError(
                        f"{self.path}:{line_number}: expected {count} components, "
                        f"got {len(parts) - 1}"
                    )
                yield parts[0], self._parse_text_components(parts[1:], line_number)

    def _parse_text_components(self, fields: list[str], line_number: int) -> Vector:
        try:
            if self.vector_type == VectorType.BINARY:
                values = torch.tensor([int(f) != 0 for f in fields], dtype=torch.bool)
            else:
                values = torch.tensor([float(f) for f in fields], dtype=torch.float32)
        except ValueError as exc:
            raise FormatError(f"{self.path}:{line_number}: {exc}") from exc
        return vector_from_components(self.vector_type, self.dimension, values)


def iter_vectors(
    path: str | Path, file_format: IndexFileFormat | None = None
) -> Iterator[tuple[str, Vector]]:
    yield from VectorStoreReader(path, file_format)


def load_vector_store(
    path: str | Path,
    vector_type: VectorType | str | None = None,
    dimension: int | None = None,
    file_format: IndexFileFormat | None = None,
) -> VectorStoreRAM:
    """Read a whole vector file into memory.

    Raises:
        FormatError: header type/dimension differ from the expected ones,
            or the file is malformed
    """
    reader = VectorStoreReader(path, file_format)
    if vector_type is not None and VectorType.parse(vector_type) != reader.vector_type:
        raise FormatError(
            f"{reader.path} holds {reader.vector_type.value} vectors, "
            f"expected {VectorType.parse(vector_type).value}"
        )
    if dimension is not None and dimension != reader.dimension:
        raise FormatError(
            f"{reader.path} has dimension {reader.dimension}, expected {dimension}"
        )
    store = VectorStoreRAM(reader.vector_type, reader.dimension)
    for identifier, vector in reader:
        store.put(identifier, vector)
    logger.info("Read %d vectors from %s", len(store), reader.path)
    return store


def load_vector_store_for_config(
    path: str | Path, config: TrainingConfig, file_format: IndexFileFormat | None = None
) -> VectorStoreRAM:
    return load_vector_store(path, config.vector_type, config.dimension, file_format)
