"""
In-place rewriting of placeholder strings inside compiled Android artifacts.

Both rewriters work on opaque byte blobs: they never parse the surrounding
container, they only locate an encoded placeholder and overwrite it with a
replacement that is no longer than itself. The output always has the same
length as the input, and the caller's buffer is never modified.
"""

import struct
from typing import Union

Buffer = Union[bytes, bytearray, memoryview]

UTF16_TERMINATOR = b"\x00\x00"


class PatchError(Exception):
    pass


class InputTooLong(PatchError):
    def __init__(self, what: str, limit: int) -> None:
        super().__init__(f"{what} too long (max {limit} chars), please use a shorter value")
        self.limit = limit


class PatternNotFound(PatchError):
    pass


def matches_at(data: Buffer, offset: int, pattern: bytes) -> bool:
    """
    check whether `pattern` occurs in `data` starting exactly at `offset`;
    a match that would run past the end of `data` is rejected
    """

    if offset < 0 or offset + len(pattern) > len(data):
        return False
    return data[offset : offset + len(pattern)] == pattern


def encode_utf16le(value: str) -> bytes:
    return value.encode("utf-16-le")


def utf16_length(value: str) -> int:
    return len(encode_utf16le(value)) // 2


def rewrite_identifier(manifest_bytes: Buffer, old_id: str, new_id: str) -> bytes:
    """
    Replace every occurrence of the `old_id` package identifier in a binary
    manifest with `new_id`, zero-padding the unused tail of each match.

    The identifier is searched for as UTF-8 first and then as UTF-16LE, since
    a manifest may carry it in both forms. Raises InputTooLong if `new_id`
    does not fit in the space of `old_id`, and PatternNotFound if neither
    encoding of `old_id` occurs.
    """

    encodings = []
    for encode in (lambda s: s.encode("utf-8"), encode_utf16le):
        old_bytes = encode(old_id)
        new_bytes = encode(new_id)
        if len(new_bytes) > len(old_bytes):
            raise InputTooLong("Package ID", len(old_id))
        encodings.append((old_bytes, new_bytes))

    result = bytearray(manifest_bytes)
    replaced = 0
    for old_bytes, new_bytes in encodings:
        replaced += _overwrite_all(result, old_bytes, new_bytes)

    if replaced == 0:
        raise PatternNotFound(f"could not find template package ID '{old_id}' in manifest")

    return bytes(result)


def _overwrite_all(data: bytearray, old_bytes: bytes, new_bytes: bytes) -> int:
    if len(old_bytes) == 0:
        return 0

    padded = new_bytes + bytes(len(old_bytes) - len(new_bytes))
    count = 0
    i = 0
    while i < len(data):
        if matches_at(data, i, old_bytes):
            data[i : i + len(old_bytes)] = padded
            count += 1
            i += len(old_bytes)
        else:
            i += 1
    return count


def rewrite_string(resource_bytes: Buffer, old_value: str, new_value: str) -> bytes:
    """
    Replace every occurrence of the `old_value` string record in a compiled
    resource table with `new_value`.

    Records are stored as a little-endian 16-bit character count, the
    UTF-16LE characters and a 16-bit null terminator. When the two bytes in
    front of a match hold the old count they are updated to the new one;
    otherwise they are left as they are and only the characters are
    rewritten. The record region keeps its size, any bytes freed by a
    shorter value are zeroed.
    """

    old_length = utf16_length(old_value)
    new_length = utf16_length(new_value)
    if new_length > old_length:
        raise InputTooLong("Value", old_length)

    result = bytearray(resource_bytes)
    old_bytes = encode_utf16le(old_value)
    new_bytes = encode_utf16le(new_value)
    region_size = len(old_bytes) + len(UTF16_TERMINATOR)

    replaced = False
    i = 0
    while len(old_bytes) > 0 and i < len(result):
        if not matches_at(result, i, old_bytes):
            i += 1
            continue

        if i >= 2:
            (count,) = struct.unpack_from("<H", result, i - 2)
            if count == old_length:
                struct.pack_into("<H", result, i - 2, new_length)

        result[i : i + len(new_bytes)] = new_bytes

        terminator = i + len(new_bytes)
        if terminator + len(UTF16_TERMINATOR) <= len(result):
            result[terminator : terminator + len(UTF16_TERMINATOR)] = UTF16_TERMINATOR

        tail_start = terminator + len(UTF16_TERMINATOR)
        tail_end = min(i + region_size, len(result))
        if tail_end > tail_start:
            result[tail_start:tail_end] = bytes(tail_end - tail_start)

        replaced = True
        i += region_size

    if not replaced:
        raise PatternNotFound(f"could not find template string '{old_value}' in resources")

    return bytes(result)
