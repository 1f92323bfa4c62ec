from __future__ import annotations

from fnmatch import fnmatchcase


def expand_braces(pattern: str) -> list[str]:
    """Expand one level of shell-style braces: '**/*.{tsx,jsx}' -> ['**/*.tsx', '**/*.jsx']."""

    start = pattern.find("{")
    end = pattern.find("}", start + 1) if start >= 0 else -1
    if start < 0 or end < 0:
        return [pattern]
    head, body, tail = pattern[:start], pattern[start + 1 : end], pattern[end + 1 :]
    out: list[str] = []
    for alt in body.split(","):
        out.extend(expand_braces(head + alt + tail))
    return out


def matches_any(rel: str, patterns: list[str]) -> bool:
    """Glob-match a POSIX relative path against patterns such as 'node_modules/**'."""

    for patt in patterns:
        for p in expand_braces(patt):
            if fnmatchcase(rel, p):
                return True
            # 'dir/**' also matches the directory at any depth.
            if p.endswith("/**"):
                prefix = p[:-3]
                if rel == prefix or rel.startswith(prefix + "/") or f"/{prefix}/" in f"/{rel}":
                    return True
    return False
