"""
Vulnerability match curation.

Decides which scanner matches are actionable by checking CPE provenance
and the version/fix metadata the match relies on.
"""
from .cpe import Cpe, CpeAttributes, canonicalize, parse_cpe
from .models import Fix, Match, MatchDetail, Package, Vulnerability
from .trust import CpeTrustArbiter
from .validator import MatchValidator


__all__ = [
    'Cpe',
    'CpeAttributes',
    'canonicalize',
    'parse_cpe',
    'Fix',
    'Match',
    'MatchDetail',
    'Package',
    'Vulnerability',
    'CpeTrustArbiter',
    'MatchValidator',
]
