"""Configuration schema for declarative flow definitions using Pydantic.

A flow definition names its first activity and lists every activity with
either an unconditional target (``to``) or a condition block. A condition
block holds ordered branches and an ``otherwise`` target; a branch may
itself hold a nested condition block instead of a target. The token
``$end`` stands for the end of the flow wherever a target is expected.
"""

from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field, model_validator

END = "$end"

# Identifiers keep their YAML/JSON type (1 stays an int, "1" stays a string)
Identifier = Union[int, str]


class BranchConfig(BaseModel):
    """One guarded branch of a condition block."""

    when: Identifier
    to: Identifier | None = None
    conditions: "ConditionBlockConfig | None" = None

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def validate_target(self) -> "BranchConfig":
        """A branch needs exactly one of a target or a nested block."""
        if (self.to is None) == (self.conditions is None):
            raise ValueError(
                f"Branch '{self.when}' requires exactly one of 'to' or 'conditions'"
            )
        return self


class ConditionBlockConfig(BaseModel):
    """Ordered condition branches with their fallback target."""

    branches: List[BranchConfig] = Field(min_length=1)
    otherwise: Identifier

    model_config = {"extra": "forbid"}


class ActivityConfig(BaseModel):
    """Configuration for one activity and its outgoing edge."""

    id: Identifier
    to: Identifier | None = None
    conditions: ConditionBlockConfig | None = None
    description: str | None = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def validate_edge(self) -> "ActivityConfig":
        """An activity needs exactly one of a target or a condition block."""
        if self.id == END:
            raise ValueError(f"'{END}' is reserved and cannot name an activity")
        if (self.to is None) == (self.conditions is None):
            raise ValueError(
                f"Activity '{self.id}' requires exactly one of 'to' or 'conditions'"
            )
        return self


class FlowConfig(BaseModel):
    """Complete flow definition."""

    name: str = Field(min_length=1)
    version: str = "1.0.0"
    description: str | None = None
    start: Identifier
    activities: List[ActivityConfig] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


BranchConfig.model_rebuild()
ConditionBlockConfig.model_rebuild()
ActivityConfig.model_rebuild()
FlowConfig.model_rebuild()


def validate_config(config: Dict[str, Any]) -> FlowConfig:
    """Validate a configuration dictionary.

    Args:
        config: Configuration dictionary.

    Returns:
        Validated FlowConfig instance.

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return FlowConfig(**config)


def generate_json_schema() -> Dict[str, Any]:
    """Generate JSON schema for flow configuration."""
    return FlowConfig.model_json_schema()
