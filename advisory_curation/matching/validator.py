"""
Curation of scanner matches.

Generic CPE dictionaries produce many false positives for ecosystems that
lack curated CPE mappings. For packages in those ecosystems, a CPE-based
match is only kept when it passes every check in the chain below; the
first failing check determines the rejection reason. Matches in other
ecosystems, and matches not found via CPEs, are always kept.

Check chain (per CPE-based match detail):
1. The CPE used must have a trusted source
2. The found version constraint must be meaningful
3. The vulnerability must list fix versions
4. Every fix version must parse under the ecosystem's version grammar
"""
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from packaging.version import InvalidVersion, Version

from .models import CPE_MATCH, FIX_STATE_NOT_FIXED, Match, MatchDetail
from .trust import CpeTrustArbiter

logger = logging.getLogger(__name__)

GO_MODULE = "go-module"

DEFAULT_FLAGGED_ECOSYSTEMS = (GO_MODULE,)
DEFAULT_UNKNOWN_CONSTRAINTS = ("none (unknown)",)
# The Go standard library has curated CPEs upstream
DEFAULT_EXEMPT_PACKAGES = ((GO_MODULE, "stdlib"),)

REASON_UNTRUSTED_CPE = "untrusted CPE source"
REASON_NO_CONSTRAINT = "no meaningful version constraint"
REASON_NO_FIX_VERSION = "no fix version to validate against"
REASON_BAD_FIX_VERSION = "unparseable fix version"

# SemVer 2.0.0 with an optional leading v. Pseudo-versions and +incompatible
# are pre-release and build forms of the same grammar.
_NUMERIC = r"(?:0|[1-9]\d*)"
_PRERELEASE_ID = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
_GO_SEMVER = re.compile(
    rf"^v?{_NUMERIC}\.{_NUMERIC}\.{_NUMERIC}"
    rf"(?:-{_PRERELEASE_ID}(?:\.{_PRERELEASE_ID})*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


def is_pep440_version(text: str) -> bool:
    try:
        Version(text)
    except InvalidVersion:
        return False
    return True


def is_go_version(text: str) -> bool:
    """Go module versions: semantic versions with an optional leading v."""
    return _GO_SEMVER.match(text) is not None


VERSION_GRAMMARS: Dict[str, Callable[[str], bool]] = {
    GO_MODULE: is_go_version,
}


class MatchValidator:
    """
    Accept/reject decisions for scanner matches.

    Stateless apart from configuration; safe to share between threads.
    """

    def __init__(
        self,
        arbiter: Optional[CpeTrustArbiter] = None,
        flagged_ecosystems: Iterable[str] = DEFAULT_FLAGGED_ECOSYSTEMS,
        unknown_constraints: Iterable[str] = DEFAULT_UNKNOWN_CONSTRAINTS,
        exempt_packages: Iterable[Tuple[str, str]] = DEFAULT_EXEMPT_PACKAGES,
    ):
        """
        Args:
            arbiter: CPE trust arbiter (default trust set if None)
            flagged_ecosystems: Package types whose CPE matches get strict checks
            unknown_constraints: Constraint strings meaning "no constraint"
            exempt_packages: (type, name) pairs that skip strict checks
        """
        self.arbiter = arbiter or CpeTrustArbiter()
        self.flagged_ecosystems = frozenset(flagged_ecosystems)
        self.unknown_constraints = frozenset(unknown_constraints)
        self.exempt_packages = frozenset(tuple(p) for p in exempt_packages)

    def accept(self, match: Match) -> Tuple[bool, str]:
        """
        Decide whether a match should be reported.

        Returns:
            Tuple of (accepted, reason); reason is "" when accepted
        """
        package = match.package
        if package.type not in self.flagged_ecosystems:
            return True, ""
        if (package.type, package.name) in self.exempt_packages:
            return True, ""

        for detail in match.details:
            if detail.type != CPE_MATCH:
                continue
            reason = self._check_cpe_detail(match, detail)
            if reason:
                logger.debug(
                    f"Rejecting {match.vulnerability.id} for {package.name}: {reason}"
                )
                return False, reason

        return True, ""

    def _check_cpe_detail(self, match: Match, detail: MatchDetail) -> str:
        if not self.arbiter.decide(detail.searched_cpes, match.package.cpes):
            return REASON_UNTRUSTED_CPE

        constraint = detail.found_version_constraint.strip()
        if not constraint or constraint in self.unknown_constraints:
            return REASON_NO_CONSTRAINT

        fix = match.vulnerability.fix
        if fix.state == FIX_STATE_NOT_FIXED or not fix.versions:
            return REASON_NO_FIX_VERSION

        grammar = VERSION_GRAMMARS.get(match.package.type, is_pep440_version)
        for fixed_version in fix.versions:
            if not grammar(fixed_version):
                return REASON_BAD_FIX_VERSION

        return ""

    def filter_matches(self, matches: Iterable[Match], metrics=None) -> Tuple[List[Match], List[Tuple[Match, str]]]:
        """
        Split matches into kept and rejected.

        Args:
            matches: Scanner matches
            metrics: Optional CurationMetrics to record decisions in

        Returns:
            Tuple of (kept matches, list of (rejected match, reason))
        """
        kept: List[Match] = []
        rejected: List[Tuple[Match, str]] = []

        for match in matches:
            accepted, reason = self.accept(match)
            if metrics is not None:
                metrics.record_decision(match.package.type, accepted, reason)
            if accepted:
                kept.append(match)
            else:
                rejected.append((match, reason))

        logger.info(f"Kept {len(kept)} matches, rejected {len(rejected)}")
        return kept, rejected
