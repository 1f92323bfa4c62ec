import ast
from pathlib import Path

import pytest

pytestmark = pytest.mark.repo_local

CORE_DIR = Path(__file__).resolve().parents[1] / "dsgate" / "core"


def test_import_graph_sanity() -> None:
    # These should import without any circular dependency errors.
    import dsgate.analysis.contract_validator  # noqa: F401
    import dsgate.ci.render  # noqa: F401
    import dsgate.cli  # noqa: F401
    import dsgate.rollback  # noqa: F401


def test_core_is_a_leaf() -> None:
    offenders = []
    for path in sorted(CORE_DIR.glob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for node in ast.walk(tree):
            names = []
            if isinstance(node, ast.Import):
                names = [a.name for a in node.names]
            elif isinstance(node, ast.ImportFrom) and node.module:
                names = [node.module]
            for name in names:
                if name.startswith("dsgate.") and not name.startswith("dsgate.core"):
                    offenders.append(f"{path.name}: {name}")
    assert offenders == []
