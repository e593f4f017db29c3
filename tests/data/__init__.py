import json
import struct
from zipfile import ZIP_DEFLATED, ZIP_STORED, ZipFile

TEMPLATE_PACKAGE = "com.appy.generated.webapp.placeholder.app"
TEMPLATE_APP_NAME = "TestApp"


def string_record(value: str) -> bytes:
    encoded = value.encode("utf-16-le")
    return struct.pack("<H", len(encoded) // 2) + encoded + b"\x00\x00"


def make_manifest(package: str = TEMPLATE_PACKAGE, chunk_type: int = 0x0003) -> bytes:
    body = b"\x01\x00\x1c\x00" + string_record("manifest") + string_record(package) + b"\x00" * 6
    return struct.pack("<HHI", chunk_type, 8, 8 + len(body)) + body


def make_resources(app_name: str = TEMPLATE_APP_NAME) -> bytes:
    body = b"\x01\x00\x00\x00" + string_record("res/mipmap/ic_launcher.png") + string_record(app_name)
    return struct.pack("<HHI", 0x0002, 12, 12 + len(body)) + b"\x01\x00\x00\x00" + body


def make_template_apk(path: str, manifest: bytes = None, with_config: bool = True) -> None:
    with ZipFile(path, "w") as z:
        if manifest is None:
            manifest = make_manifest()
        z.writestr("AndroidManifest.xml", manifest, ZIP_DEFLATED)
        z.writestr("classes.dex", b"dex\n035\x00" + bytes(range(64)), ZIP_DEFLATED)
        z.writestr("resources.arsc", make_resources(), ZIP_STORED)
        if with_config:
            z.writestr("assets/config.json", json.dumps({"url": "https://example.com"}), ZIP_DEFLATED)
        z.writestr("META-INF/MANIFEST.MF", b"Manifest-Version: 1.0\r\n", ZIP_DEFLATED)
        z.writestr("META-INF/CERT.SF", b"Signature-Version: 1.0\r\n", ZIP_DEFLATED)


def set_compression_method(path: str, method: int) -> None:
    with open(path, "rb") as f:
        data = bytearray(f.read())
    for signature, offset in ((b"PK\x03\x04", 8), (b"PK\x01\x02", 10)):
        i = data.find(signature)
        while i != -1:
            struct.pack_into("<H", data, i + offset, method)
            i = data.find(signature, i + 4)
    with open(path, "wb") as f:
        f.write(data)
