"""Edit-candidate ranking and kind aggregation for provenance chains."""
from dataclasses import dataclass
from typing import Iterable, List

from .provenance import ProvNode


@dataclass(frozen=True)
class Candidate:
    """A source location worth editing to change a traced value."""
    target: str
    reason: str

    def to_dict(self) -> dict:
        return {'target': self.target, 'reason': self.reason}


# Node kind -> candidate reason. Ident, Op and Unknown nodes never point at an edit target.
REASONS = {
    'Literal': 'literal',
    'Init': 'const-init',
    'Member': 'member',
    'ObjectProp': 'structural',
    'ArrayElem': 'structural',
    'Call': 'callsite',
    'Ctor': 'constructor',
    'Import': 'import',
    'Env': 'env',
}

KIND_TAGS = {
    'Literal': 'literal',
    'Ident': 'ident',
    'Init': 'init',
    'Import': 'import',
    'Member': 'member',
    'ObjectProp': 'object',
    'ArrayElem': 'array',
    'Call': 'call',
    'Ctor': 'ctor',
    'Op': 'op',
    'Env': 'env',
    'Unknown': 'unknown',
}


def rank_candidates(chain: Iterable[ProvNode]) -> List[Candidate]:
    """Derive edit candidates from a chain.

    Candidates keep discovery order; a (reason, target) pair is reported once.
    """
    candidates = []
    for node in chain:
        reason = REASONS.get(node.kind)
        if reason is None:
            continue
        if node.kind == 'Call':
            candidates.append(Candidate(target=node.callsite, reason=reason))
            if node.fn_def_span:
                candidates.append(Candidate(target=node.fn_def_span, reason='fn-def'))
        else:
            candidates.append(Candidate(target=node.span, reason=reason))

    seen = set()
    unique = []
    for candidate in candidates:
        key = (candidate.reason, candidate.target)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def aggregate_kinds(chain: Iterable[ProvNode]) -> List[str]:
    """Sorted, deduplicated lowercase kind tags present in a chain."""
    return sorted({KIND_TAGS[node.kind] for node in chain if node.kind in KIND_TAGS})


def format_candidates(candidates: Iterable[Candidate]) -> str:
    """Compact ``reason@target`` list, ``;`` separated, for attribute-style output."""
    return ';'.join(f"{c.reason}@{c.target}" for c in candidates)
