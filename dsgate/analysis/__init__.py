"""Static analysis of JSX/TSX sources against a component registry.

Dependency direction: nodes <- parse <- context <- rules <- contract_validator.
"""

from __future__ import annotations

from dsgate.analysis.contract_validator import StaticContractValidator
from dsgate.analysis.parse import SourceParseError, parse_source
from dsgate.analysis.rules.base import Diagnostic, RuleResult


__all__ = [
	"Diagnostic",
	"RuleResult",
	"SourceParseError",
	"StaticContractValidator",
	"parse_source",
]
