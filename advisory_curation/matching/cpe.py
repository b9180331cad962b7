"""
CPE 2.3 attributes, provenance-tagged CPEs and formatted-string binding.

A package can be attributed the same logical CPE by several mechanisms
(a curated mapping, a generic dictionary lookup, heuristics). Cpe keeps
the attributes together with the source tag that produced them so the
trust arbiter can tell these apart.
"""
import re
from dataclasses import dataclass, fields
from typing import List

CPE_PREFIX = "cpe:2.3:"

ANY = "*"
NA = "-"

# Characters that stand for themselves in a formatted string value
_UNQUOTED = re.compile(r"[A-Za-z0-9._\-]")
_UNESCAPED_COLON = re.compile(r"(?<!\\):")


@dataclass(frozen=True)
class CpeAttributes:
    """The eleven CPE 2.3 attributes. Empty means ANY."""
    part: str = ""
    vendor: str = ""
    product: str = ""
    version: str = ""
    update: str = ""
    edition: str = ""
    language: str = ""
    sw_edition: str = ""
    target_sw: str = ""
    target_hw: str = ""
    other: str = ""

    def bind_to_fmt_string(self) -> str:
        """Bind to the canonical CPE 2.3 formatted string."""
        return CPE_PREFIX + ":".join(
            _bind_value(getattr(self, f.name)) for f in fields(self)
        )

    def __str__(self) -> str:
        return self.bind_to_fmt_string()


@dataclass(frozen=True)
class Cpe:
    """A CPE attributed to a package, tagged with how it was attributed."""
    attributes: CpeAttributes
    source: str = ""

    def bind_to_fmt_string(self) -> str:
        return self.attributes.bind_to_fmt_string()


def _bind_value(value: str) -> str:
    if value in ("", ANY):
        return ANY
    if value == NA:
        return NA
    return "".join(c if _UNQUOTED.match(c) else "\\" + c for c in value)


def _unbind_value(value: str) -> str:
    if value == ANY:
        return ""
    out = []
    escaped = False
    for c in value:
        if escaped:
            out.append(c)
            escaped = False
        elif c == "\\":
            escaped = True
        else:
            out.append(c)
    return "".join(out)


def parse_cpe(text: str) -> CpeAttributes:
    """
    Parse a CPE 2.3 formatted string.

    Raises:
        ValueError: If the string is not a CPE 2.3 formatted string
    """
    if not text.startswith(CPE_PREFIX):
        raise ValueError(f"not a CPE 2.3 formatted string: {text!r}")

    parts: List[str] = _UNESCAPED_COLON.split(text[len(CPE_PREFIX):])
    names = [f.name for f in fields(CpeAttributes)]
    if len(parts) != len(names):
        raise ValueError(f"expected {len(names)} CPE components in {text!r}, got {len(parts)}")

    return CpeAttributes(**{name: _unbind_value(p) for name, p in zip(names, parts)})


def canonicalize(text: str) -> str:
    """Normalize a CPE string; strings that don't parse are kept as-is."""
    try:
        return parse_cpe(text).bind_to_fmt_string()
    except ValueError:
        return text
