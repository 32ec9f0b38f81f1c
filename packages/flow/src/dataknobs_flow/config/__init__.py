"""Declarative flow configuration."""

from dataknobs_flow.config.builder import build_flow, load_flow
from dataknobs_flow.config.loader import FlowConfigLoader
from dataknobs_flow.config.schema import (
    END,
    ActivityConfig,
    BranchConfig,
    ConditionBlockConfig,
    FlowConfig,
    generate_json_schema,
    validate_config,
)

__all__ = [
    "END",
    "ActivityConfig",
    "BranchConfig",
    "ConditionBlockConfig",
    "FlowConfig",
    "FlowConfigLoader",
    "build_flow",
    "generate_json_schema",
    "load_flow",
    "validate_config",
]
