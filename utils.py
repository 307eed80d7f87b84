"""Form-urlencoded decoding helpers shared across server modules."""

import logging

logger = logging.getLogger(__name__)

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
UNRESERVED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)


class FormDecodeError(ValueError):
    """Raised when a percent escape is truncated or not hexadecimal."""


def decode_form_component(text: str) -> str:
    """Decode one application/x-www-form-urlencoded component.

    ``+`` becomes a space and ``%XY`` becomes the character with code point
    0xXY. Escaped bytes are not reassembled into multi-byte UTF-8 sequences.
    """
    decoded: list[str] = []
    position = 0
    length = len(text)
    while position < length:
        char = text[position]
        if char == "+":
            decoded.append(" ")
            position += 1
            continue
        if char != "%":
            decoded.append(char)
            position += 1
            continue

        hex_pair = text[position + 1 : position + 3]
        if len(hex_pair) != 2:
            raise FormDecodeError(f"Truncated percent escape at offset {position}")
        if not all(digit in HEX_DIGITS for digit in hex_pair):
            raise FormDecodeError(f"Invalid percent escape {'%' + hex_pair!r}")
        decoded.append(chr(int(hex_pair, 16)))
        position += 3
    return "".join(decoded)


def decode_form_component_or_raw(text: str) -> str:
    """Decode ``text``; on a bad escape keep it with only ``+`` turned into spaces."""
    spaced = text.replace("+", " ")
    try:
        return decode_form_component(spaced)
    except FormDecodeError as exc:
        logger.debug("Keeping undecoded form value %r: %s", text, exc)
        return spaced


def parse_form_body(body: bytes) -> dict[str, str]:
    """Split a form body into fields; the first occurrence of a name wins."""
    fields: dict[str, str] = {}
    text = body.decode("utf-8", errors="replace")
    for pair in text.split("&"):
        if not pair:
            continue
        raw_name, _sep, raw_value = pair.partition("=")
        name = decode_form_component_or_raw(raw_name)
        fields.setdefault(name, decode_form_component_or_raw(raw_value))
    return fields


def encode_form_component(text: str) -> str:
    encoded: list[str] = []
    for char in text:
        if char == " ":
            encoded.append("+")
        elif char in UNRESERVED:
            encoded.append(char)
        elif ord(char) <= 0xFF:
            encoded.append(f"%{ord(char):02X}")
        else:
            encoded.extend(f"%{byte:02X}" for byte in char.encode("utf-8"))
    return "".join(encoded)
