"""Intel HEX firmware images."""

import binascii

from . import config

# Record types
DATA = 0x00
EOF = 0x01
EXT_SEGMENT = 0x02
START_SEGMENT = 0x03
EXT_LINEAR = 0x04
START_LINEAR = 0x05


class FirmwareError(Exception):
    def __init__(self, message, line=None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


class FirmwareImage:
    """Contiguous memory segments decoded from a HEX file."""

    def __init__(self, segments, start=None):
        self.segments = segments  # [(address, bytes)], sorted by address
        self.start = start

    @property
    def size(self):
        return sum(len(data) for _, data in self.segments)

    def chunks(self, size=config.FIRMWARE_CHUNK):
        for address, data in self.segments:
            for offset in range(0, len(data), size):
                yield address + offset, data[offset:offset + size]


def parse_hex(text):
    memory = {}  # address -> bytearray, merged when records are contiguous
    base = 0
    start = None
    seen_eof = False

    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if seen_eof:
            raise FirmwareError("data after end-of-file record", number)
        if not line.startswith(":"):
            raise FirmwareError("record does not start with ':'", number)
        try:
            record = binascii.unhexlify(line[1:])
        except (binascii.Error, ValueError):
            raise FirmwareError("record is not valid hex", number)
        if len(record) < 5 or len(record) != record[0] + 5:
            raise FirmwareError("record length mismatch", number)
        if sum(record) & 0xFF:
            raise FirmwareError("checksum mismatch", number)

        count, kind = record[0], record[3]
        offset = (record[1] << 8) | record[2]
        payload = record[4:4 + count]

        if kind == DATA:
            address = base + offset
            for seg_start, seg in memory.items():
                if seg_start + len(seg) == address:
                    seg.extend(payload)
                    break
            else:
                memory[address] = bytearray(payload)
        elif kind == EOF:
            seen_eof = True
        elif kind == EXT_SEGMENT:
            base = int.from_bytes(payload, "big") << 4
        elif kind == EXT_LINEAR:
            base = int.from_bytes(payload, "big") << 16
        elif kind in (START_SEGMENT, START_LINEAR):
            start = int.from_bytes(payload, "big")
        else:
            raise FirmwareError(f"unknown record type {kind:02X}", number)

    if not seen_eof:
        raise FirmwareError("missing end-of-file record")
    if not memory:
        raise FirmwareError("image contains no data")
    segments = sorted((address, bytes(data)) for address, data in memory.items())
    return FirmwareImage(segments, start)
