"""
Scanner match data model.

Matches are produced by an external scanner. from_dict() accepts the
scanner's JSON report shape:

    {
      "vulnerability": {"id": "...", "fix": {"versions": [...], "state": "fixed"}},
      "artifact": {"name": "...", "version": "...", "type": "go-module",
                   "cpes": [{"cpe": "cpe:2.3:...", "source": "nvd-cpe-dictionary"}]},
      "matchDetails": [{"type": "cpe-matcher",
                        "searchedBy": {"cpes": [...]},
                        "found": {"versionConstraint": "< 1.2.3", "cpes": [...]}}]
    }

Older reports list artifact CPEs as bare strings; those carry no source tag.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .cpe import Cpe, parse_cpe

CPE_MATCH = "cpe-matcher"

FIX_STATE_FIXED = "fixed"
FIX_STATE_NOT_FIXED = "not-fixed"
FIX_STATE_WONT_FIX = "wont-fix"
FIX_STATE_UNKNOWN = "unknown"


@dataclass(frozen=True)
class Fix:
    versions: List[str] = field(default_factory=list)
    state: str = FIX_STATE_UNKNOWN


@dataclass(frozen=True)
class Vulnerability:
    id: str = ""
    fix: Fix = field(default_factory=Fix)


@dataclass(frozen=True)
class Package:
    name: str
    type: str = ""
    version: str = ""
    cpes: List[Cpe] = field(default_factory=list)


@dataclass(frozen=True)
class MatchDetail:
    type: str
    searched_cpes: List[str] = field(default_factory=list)
    found_cpes: List[str] = field(default_factory=list)
    found_version_constraint: str = ""


@dataclass(frozen=True)
class Match:
    """One vulnerability matched against one package."""
    vulnerability: Vulnerability
    package: Package
    details: List[MatchDetail] = field(default_factory=list)
    # Original report entry, re-emitted untouched for kept matches
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        vuln = data.get("vulnerability") or {}
        fix = vuln.get("fix") or {}
        artifact = data.get("artifact") or data.get("package") or {}

        return cls(
            vulnerability=Vulnerability(
                id=vuln.get("id", ""),
                fix=Fix(
                    versions=[str(v) for v in fix.get("versions") or []],
                    state=fix.get("state") or FIX_STATE_UNKNOWN,
                ),
            ),
            package=Package(
                name=artifact.get("name", ""),
                type=artifact.get("type", ""),
                version=artifact.get("version", ""),
                cpes=_package_cpes(artifact.get("cpes") or []),
            ),
            details=[_match_detail(d) for d in data.get("matchDetails") or []],
            raw=data,
        )


def _package_cpes(entries: List[Any]) -> List[Cpe]:
    cpes = []
    for entry in entries:
        if isinstance(entry, str):
            text, source = entry, ""
        else:
            text, source = entry.get("cpe", ""), entry.get("source", "")
        try:
            cpes.append(Cpe(attributes=parse_cpe(text), source=source))
        except ValueError:
            # An unparseable CPE can never match a searched CPE
            continue
    return cpes


def _match_detail(data: Dict[str, Any]) -> MatchDetail:
    searched = data.get("searchedBy") or {}
    found = data.get("found") or {}
    return MatchDetail(
        type=data.get("type", ""),
        searched_cpes=list(searched.get("cpes") or []) if isinstance(searched, dict) else [],
        found_cpes=list(found.get("cpes") or []) if isinstance(found, dict) else [],
        found_version_constraint=(found.get("versionConstraint") or "") if isinstance(found, dict) else "",
    )
