from __future__ import annotations

import re

from dsgate.analysis.nodes import Pos
from dsgate.analysis.rules.base import Rule


HARDCODED_PATTERNS = (
    re.compile(r"#[0-9a-fA-F]{3,8}"),
    re.compile(r"\d+px"),
    re.compile(r"(?:rgba?|hsla?)\([^)]+\)"),
    re.compile(r"\d+rem"),
)

TOKEN_REFERENCE = re.compile(r"var\(--([^)]+)\)|token\(['\"]([^'\"]+)['\"]\)")

# Common literal -> token name; only values listed here produce a warning.
TOKEN_SUGGESTIONS = {
    "#ffffff": "color.white",
    "#000000": "color.black",
    "16px": "spacing.md",
    "8px": "spacing.sm",
    "24px": "spacing.lg",
    "1rem": "spacing.md",
}


def suggest_token(value: str) -> str | None:
    return TOKEN_SUGGESTIONS.get(value.lower() if value.startswith("#") else value)


class TokenUsageRule(Rule):
    rule_id = "validate-tokens"

    def finish(self) -> None:
        known = self.ctx.token_names
        for lineno, line in enumerate(self.ctx.lines, start=1):
            for pattern in HARDCODED_PATTERNS:
                for m in pattern.finditer(line):
                    token = suggest_token(m.group(0))
                    if token is None:
                        continue
                    self.warning(
                        Pos(lineno, m.start() + 1),
                        f"Hard-coded value '{m.group(0)}' should use token '{token}'",
                        suggestion=token,
                    )

            for m in TOKEN_REFERENCE.finditer(line):
                name = m.group(1) or m.group(2)
                if name in known or name.replace("-", ".") in known:
                    continue
                self.error(Pos(lineno, m.start() + 1), f"Token '{name}' not found in registry")
