from __future__ import annotations

import re

from dsgate.analysis.nodes import Pos
from dsgate.analysis.rules.base import Rule


SPACING_DECLARATION = re.compile(r"(?:padding|margin|gap):\s*(\d+)px")
GRID_UNIT_PX = 4


class DesignPatternRule(Rule):
    rule_id = "validate-patterns"

    def finish(self) -> None:
        for lineno, line in enumerate(self.ctx.lines, start=1):
            for m in SPACING_DECLARATION.finditer(line):
                value = int(m.group(1))
                if value % GRID_UNIT_PX:
                    self.suggest(
                        Pos(lineno, m.start() + 1),
                        f"Spacing value {value}px is not aligned to {GRID_UNIT_PX}px grid. Consider using a spacing token.",
                    )
