"""Pytest configuration and shared fixtures for dataknobs_flow tests."""

import sys
from pathlib import Path

import pytest
import yaml

# Add src to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dataknobs_flow import Flow  # noqa: E402


def build_linear_flow() -> Flow:
    """START -> 1; 1 if[100] -> 2 otherwise 4; 2 -> 3 -> 4 -> 5 -> END."""
    flow = Flow.create("linear")
    flow.from_start().to(1)
    flow.from_activity(1).only_if(100).to(2).otherwise(4)
    flow.from_activity(2).to(3).to(4).to(5).to_end()
    return flow.build()


def build_nested_flow() -> Flow:
    """Nested condition example with conditions 100, 200, 300, 3000 and 400."""
    flow = Flow.create("nested")
    flow.from_start().to(1)
    (flow.from_activity(1)
        .only_if(100)
            .only_if(200)
                .to(2)
            .else_if(300)
                .only_if(3000)
                    .to(3)
                .otherwise().to_end()
            .otherwise(4)
        .else_if(400)
            .to(5)
        .otherwise().to_end())
    flow.from_activity(2).to(3).to(4).to(5).to_end()
    return flow.build()


NESTED_CONFIG = {
    "name": "nested",
    "start": 1,
    "activities": [
        {
            "id": 1,
            "conditions": {
                "branches": [
                    {
                        "when": 100,
                        "conditions": {
                            "branches": [
                                {"when": 200, "to": 2},
                                {
                                    "when": 300,
                                    "conditions": {
                                        "branches": [{"when": 3000, "to": 3}],
                                        "otherwise": "$end",
                                    },
                                },
                            ],
                            "otherwise": 4,
                        },
                    },
                    {"when": 400, "to": 5},
                ],
                "otherwise": "$end",
            },
        },
        {"id": 2, "to": 3},
        {"id": 3, "to": 4},
        {"id": 4, "to": 5},
        {"id": 5, "to": "$end"},
    ],
}


@pytest.fixture
def linear_flow():
    """Built flow with one condition and a linear tail."""
    return build_linear_flow()


@pytest.fixture
def nested_flow():
    """Built flow with nested condition chains."""
    return build_nested_flow()


@pytest.fixture
def nested_config():
    """Declarative form of the nested flow."""
    return NESTED_CONFIG


@pytest.fixture
def write_config(tmp_path):
    """Write a configuration dictionary to a YAML or JSON file."""
    def _write(config, name="flow.yaml"):
        path = tmp_path / name
        if path.suffix == ".json":
            import json
            path.write_text(json.dumps(config))
        else:
            path.write_text(yaml.safe_dump(config, sort_keys=False))
        return path
    return _write
