"""Source Map v3 generation with base64 VLQ mappings."""

import json
from collections.abc import Iterable

from ferry.models import PositionMapping

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_VLQ_SHIFT = 5
_VLQ_MASK = (1 << _VLQ_SHIFT) - 1
_VLQ_CONTINUATION = 1 << _VLQ_SHIFT


def encode_vlq(value: int) -> str:
    """Encode a signed integer; the sign lives in the lowest bit."""
    vlq = (-value << 1) | 1 if value < 0 else value << 1
    digits: list[str] = []
    while True:
        digit = vlq & _VLQ_MASK
        vlq >>= _VLQ_SHIFT
        if vlq > 0:
            digit |= _VLQ_CONTINUATION
        digits.append(_BASE64[digit])
        if vlq == 0:
            return "".join(digits)


def encode_mappings(mappings: Iterable[PositionMapping]) -> str:
    """Encode mappings into the ``;``/``,`` separated segment string.

    Segments are sorted by generated position. Every generated line up to the last mapped
    one gets a slot, empty when nothing maps to it. Only the generated column restarts
    at zero on each line; source index, line and column deltas run across the file.
    """
    ordered = sorted(mappings, key=lambda m: (m.generated_line, m.generated_column))
    if not ordered:
        return ""

    lines: list[list[str]] = []
    generated_column = source_line = source_column = 0
    for mapping in ordered:
        while len(lines) < mapping.generated_line:
            lines.append([])
            generated_column = 0
        line = mapping.source_line - 1
        lines[mapping.generated_line - 1].append(
            encode_vlq(mapping.generated_column - generated_column)
            + encode_vlq(0)
            + encode_vlq(line - source_line)
            + encode_vlq(mapping.source_column - source_column)
        )
        generated_column = mapping.generated_column
        source_line = line
        source_column = mapping.source_column
    return ";".join(",".join(segments) for segments in lines)


def generate_source_map(
    file: str,
    sources: list[str],
    mappings: Iterable[PositionMapping],
    source_root: str = "",
    sources_content: list[str | None] | None = None,
    names: list[str] | None = None,
) -> str:
    source_map: dict[str, object] = {
        "version": 3,
        "file": file,
        "sourceRoot": source_root,
        "sources": sources,
    }
    if sources_content is not None:
        source_map["sourcesContent"] = sources_content
    source_map["names"] = names or []
    source_map["mappings"] = encode_mappings(mappings)
    return json.dumps(source_map, separators=(",", ":"))


def source_map_comment(map_file_name: str) -> str:
    return f"//# sourceMappingURL={map_file_name}"


def relative_path(from_file: str, to_file: str) -> str:
    """POSIX path from the directory of ``from_file`` to ``to_file``.

    >>> relative_path("node_modules/@ferry/enums/Role.d.ts", "app/Enums/Role.php")
    '../../../app/Enums/Role.php'
    """
    from_parts = from_file.split("/")[:-1]
    to_parts = to_file.split("/")
    common = 0
    while common < len(from_parts) and common < len(to_parts) and from_parts[common] == to_parts[common]:
        common += 1
    return "/".join([".."] * (len(from_parts) - common) + to_parts[common:])
