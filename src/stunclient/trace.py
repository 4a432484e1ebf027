from __future__ import annotations


def hexdump(data: bytes, width: int = 16) -> str:
    """Render ``data`` as offset / hex / ascii lines, like ``hexdump -C``."""
    lines = []
    for off in range(0, len(data), width):
        chunk = data[off : off + width]
        hex_part = " ".join(f"{b:02x}" for b in chunk)
        if len(chunk) > 8:
            # extra gap between the two 8-byte halves
            hex_part = hex_part[:23] + " " + hex_part[23:]
        text = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in chunk)
        lines.append(f"{off:08x}  {hex_part:<{width * 3}}  |{text}|")
    return "\n".join(lines)
