"""dsgate: component registry tooling.

Schema validation, batch JSON Patch mutation with backup/rollback, and static
checks of JSX/TSX sources against the registry's component contracts.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version


def __getattr__(name: str):
    if name == "__version__":
        try:
            return version("dsgate")
        except PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(name)
