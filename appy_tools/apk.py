# -*- coding: utf-8 -*-
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple
from zipfile import ZipFile, ZipInfo
import json
import os
import re
import struct

from appy_tools.binpatch import Buffer, PatchError, rewrite_identifier, rewrite_string

MANIFEST_NAME = "AndroidManifest.xml"
RESOURCES_NAME = "resources.arsc"
CONFIG_NAME = "assets/config.json"
SIGNATURE_DIR = "META-INF/"

TEMPLATE_PACKAGE_NAME = "com.appy.generated.webapp.placeholder.app"
MAX_PACKAGE_NAME_LENGTH = 50

PACKAGE_SEGMENT_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


class ChunkType(IntEnum):
    TABLE = 0x002
    XML = 0x003


class BadHeader(PatchError):
    pass


class MissingEntry(BadHeader):
    pass


class InvalidPackageName(PatchError):
    pass


class ChunkHeader:
    FORMAT = "<HHI"

    def __init__(self, type: int, header_size: int, size: int) -> None:
        self.type = type
        self.header_size = header_size
        self.size = size

    @classmethod
    def parse(cls, data: Buffer) -> "ChunkHeader":
        if len(data) < struct.calcsize(cls.FORMAT):
            raise BadHeader("truncated chunk header")
        return cls(*struct.unpack_from(cls.FORMAT, data))


def check_chunk_type(data: Buffer, expected: ChunkType) -> ChunkHeader:
    header = ChunkHeader.parse(data)
    if header.type != expected:
        raise BadHeader(f"expected {expected.name} chunk, found type 0x{header.type:04x}")
    return header


def validate_package_name(name: str) -> None:
    if len(name) > MAX_PACKAGE_NAME_LENGTH:
        raise InvalidPackageName(f"Package ID too long (max {MAX_PACKAGE_NAME_LENGTH} chars)")
    segments = name.split(".")
    if len(segments) < 2:
        raise InvalidPackageName(f"'{name}' must have at least two segments, e.g. com.example.app")
    for segment in segments:
        if PACKAGE_SEGMENT_PATTERN.match(segment) is None:
            raise InvalidPackageName(f"'{name}' has an invalid segment: '{segment}'")


class Customization:
    def __init__(
        self,
        package_name: str,
        template_package_name: str = TEMPLATE_PACKAGE_NAME,
        strings: Sequence[Tuple[str, str]] = (),
        url: Optional[str] = None,
        status_bar_dark: bool = False,
    ) -> None:
        self.package_name = package_name
        self.template_package_name = template_package_name
        self.strings = list(strings)
        self.url = url
        self.status_bar_dark = status_bar_dark

    def __repr__(self) -> str:
        return 'Customization(package_name="%s", template_package_name="%s", strings=%r, url=%r)' % (
            self.package_name,
            self.template_package_name,
            self.strings,
            self.url,
        )

    def patch_manifest(self, data: bytes) -> bytes:
        check_chunk_type(data, ChunkType.XML)
        return rewrite_identifier(data, self.template_package_name, self.package_name)

    def patch_resources(self, data: bytes) -> bytes:
        check_chunk_type(data, ChunkType.TABLE)
        for old_value, new_value in self.strings:
            data = rewrite_string(data, old_value, new_value)
        return data

    def render_config(self) -> bytes:
        config = {"url": self.url, "statusBarDark": self.status_bar_dark}
        return json.dumps(config, indent=2, ensure_ascii=False).encode("utf-8")


class CustomizeResult:
    def __init__(self) -> None:
        self.patched: List[str] = []
        self.dropped: List[str] = []
        self.copied = 0


def customize(path: str, output_path: str, customization: Customization) -> CustomizeResult:
    """
    Write a copy of the template APK at `path` to `output_path` with the
    manifest, resource table and web app config rewritten. Signature files
    are left out, the output has to be signed again before installing.

    On failure no output file is left behind.
    """

    validate_package_name(customization.package_name)

    with ZipFile(path, "r") as iz:
        names = set(iz.namelist())
        if MANIFEST_NAME not in names:
            raise MissingEntry(f"{path} has no {MANIFEST_NAME}")
        if customization.strings and RESOURCES_NAME not in names:
            raise MissingEntry(f"{path} has no {RESOURCES_NAME}")

        try:
            with ZipFile(output_path, "w") as oz:
                return _copy_entries(iz, oz, customization)
        except Exception:
            if os.path.exists(output_path):
                os.remove(output_path)
            raise


def _copy_entries(iz: ZipFile, oz: ZipFile, customization: Customization) -> CustomizeResult:
    result = CustomizeResult()
    names = set(iz.namelist())

    for info in iz.infolist():
        if info.filename.startswith(SIGNATURE_DIR):
            result.dropped.append(info.filename)
            continue

        data = iz.read(info)
        if info.filename == MANIFEST_NAME:
            data = customization.patch_manifest(data)
            result.patched.append(info.filename)
        elif info.filename == RESOURCES_NAME and customization.strings:
            data = customization.patch_resources(data)
            result.patched.append(info.filename)
        elif info.filename == CONFIG_NAME and customization.url is not None:
            data = customization.render_config()
            result.patched.append(info.filename)
        else:
            result.copied += 1

        oz.writestr(info, data)

    if customization.url is not None and CONFIG_NAME not in names:
        oz.writestr(ZipInfo(CONFIG_NAME), customization.render_config())
        result.patched.append(CONFIG_NAME)

    return result
