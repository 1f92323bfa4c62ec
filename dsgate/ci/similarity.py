from __future__ import annotations


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        cur = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            cur.append(min(prev[j - 1] + cost, cur[j - 1] + 1, prev[j] + 1))
        prev = cur
    return prev[-1]


def similarity(a: str, b: str) -> float:
    """1.0 for identical strings, falling to 0.0 as edit distance approaches the longer length."""

    longer = a if len(a) > len(b) else b
    if not longer:
        return 1.0
    return (len(longer) - levenshtein(a, b)) / len(longer)


def closest_matches(value: str, candidates: list[str], *, threshold: float = 0.3, limit: int = 3) -> list[str]:
    scored = [(similarity(value, c), c) for c in candidates]
    # Stable on ties: candidates keep their declared order.
    ranked = sorted((s for s in scored if s[0] > threshold), key=lambda s: -s[0])
    return [c for _, c in ranked[:limit]]
