"""
CPE provenance arbitration.

Decides whether the CPEs a match was found through were attributed to the
package by a trusted mechanism (curated mappings, the NVD CPE dictionary)
rather than by generic heuristics.
"""
import logging
from typing import Iterable, Sequence

from .cpe import Cpe, canonicalize

logger = logging.getLogger(__name__)

DEFAULT_TRUSTED_CPE_SOURCES = (
    "wolfictl",
    "melange-configuration",
    "nvd-cpe-dictionary",
)


class CpeTrustArbiter:
    """
    Trust decisions over a configured set of provenance tags.

    The arbiter holds no state beyond its configuration, so one instance
    can be shared freely between threads.
    """

    def __init__(self, trusted_sources: Iterable[str] = DEFAULT_TRUSTED_CPE_SOURCES):
        self.trusted_sources = frozenset(trusted_sources)

    def is_trusted(self, cpe: Cpe) -> bool:
        return cpe.source in self.trusted_sources

    def decide(self, searched_cpes: Sequence[str], package_cpes: Sequence[Cpe]) -> bool:
        """
        Check whether the match used at least one trusted CPE.

        Every package CPE whose bound string is among the searched CPEs is
        considered. If the same CPE string was attributed more than once,
        any trusted attribution is enough.

        Args:
            searched_cpes: CPE strings the scanner searched with
            package_cpes: CPEs attributed to the package, with sources

        Returns:
            True if any matching package CPE has a trusted source
        """
        searched = {canonicalize(s) for s in searched_cpes}

        for cpe in package_cpes:
            if cpe.bind_to_fmt_string() not in searched:
                continue
            if self.is_trusted(cpe):
                return True
            logger.debug(f"CPE {cpe.bind_to_fmt_string()} has untrusted source {cpe.source!r}")

        return False
