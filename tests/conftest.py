from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dsgate.schema_validator import SchemaValidator


SAMPLE_REGISTRY: dict[str, Any] = {
    "name": "acme-ui",
    "version": "1.2.0",
    "components": [
        {
            "name": "Button",
            "description": "Clickable action",
            "props": {
                "label": {"type": "string", "required": True},
                "variant": {"type": "string", "values": ["primary", "secondary"]},
                "size": {"type": "string"},
                "onClick": {"type": "function"},
            },
            "variants": {
                "variant": {"primary": "btn-primary", "secondary": "btn-secondary"},
            },
            "examples": ['<Button label="Save" variant="primary" />'],
        },
        {
            "name": "Card",
            "props": {
                "title": {"type": "string"},
                "padding": {"type": "string"},
            },
        },
    ],
    "tokens": {
        "color": {
            "primary": {"value": "#0066cc", "type": "color"},
            "white": {"value": "#ffffff", "type": "color"},
        },
        "spacing": {
            "md": {"value": "16px", "type": "dimension"},
        },
    },
}


@pytest.fixture
def registry() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_REGISTRY)


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()
