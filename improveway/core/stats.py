"""Operation statistics for planned edits."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Any


@dataclass
class OpStats:
    attempts: int = 0
    success: int = 0
    refused: int = 0
    noop: int = 0
    fallback_used: int = 0
    operations_emitted: int = 0

    def to_dict(self) -> Dict[str, Any]:  # pragma: no cover - simple mapping
        return {
            'attempts': self.attempts,
            'success': self.success,
            'refused': self.refused,
            'noop': self.noop,
            'fallback_used': self.fallback_used,
            'operations_emitted': self.operations_emitted,
            'success_rate': (self.success / self.attempts) if self.attempts else 0.0,
            'refusal_rate': (self.refused / self.attempts) if self.attempts else 0.0,
        }


def format_stats_table(stats_dict) -> str:
    """Return a human readable multi-line table summarizing op stats."""
    if not stats_dict:
        return "<no stats>"
    header = ["op", "attempts", "succ", "refused", "noop", "fallback", "ops", "succ%"]
    rows = []
    for op in sorted(stats_dict.keys()):
        s = stats_dict[op]
        attempts = s['attempts']
        succ_pct = (s['success'] / attempts * 100.0) if attempts else 0.0
        rows.append([
            op, str(attempts), str(s['success']), str(s['refused']), str(s['noop']),
            str(s['fallback_used']), str(s['operations_emitted']), f"{succ_pct:6.2f}"
        ])
    col_w = [len(h) for h in header]
    for r in rows:
        for i, v in enumerate(r):
            if len(v) > col_w[i]: col_w[i] = len(v)
    def fmt(r):
        return " ".join(r[i].rjust(col_w[i]) for i in range(len(r)))
    lines = [fmt(header), "-" * (sum(col_w) + len(col_w) - 1)] + [fmt(r) for r in rows]
    return "\n".join(lines)


__all__ = ["OpStats", "format_stats_table"]
