from loguru import logger
from ..models.invoice import TextAnchor


def _offset(value, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"Invalid text offset: {value!r}")
    return int(value)


def resolve(anchor: TextAnchor | None, document_text: str | None) -> str:
    """
    Resolve a text anchor back into the literal text it points at.

    Segments are concatenated in anchor order and the result is trimmed.
    A missing start means 0 and a missing end means the end of the text.
    Malformed or out-of-range offsets yield an empty string.
    """
    if anchor is None or not anchor.text_segments or not document_text:
        return ""

    length = len(document_text)
    parts = []
    try:
        for segment in anchor.text_segments:
            start = _offset(segment.start_index, 0)
            end = _offset(segment.end_index, length)
            if start < 0 or end < start or end > length:
                raise ValueError(f"Segment [{start}, {end}) outside document of length {length}")
            parts.append(document_text[start:end])
    except (TypeError, ValueError) as e:
        logger.debug(f"Could not resolve text anchor: {e}")
        return ""

    return "".join(parts).strip()
