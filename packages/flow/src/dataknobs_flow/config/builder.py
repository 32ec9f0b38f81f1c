"""Build flows from declarative configuration.

A :class:`~dataknobs_flow.config.schema.FlowConfig` is replayed call by call
through the fluent :class:`~dataknobs_flow.core.builder.Flow` builder, so a
configured flow is checked by exactly the same rules as a hand-built one.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Union

from dataknobs_flow.config.loader import FlowConfigLoader
from dataknobs_flow.config.schema import END, ActivityConfig, ConditionBlockConfig, FlowConfig
from dataknobs_flow.core.builder import Flow

logger = logging.getLogger(__name__)


def build_flow(config: FlowConfig) -> Flow:
    """Build a flow from a validated configuration.

    Args:
        config: Flow configuration.

    Returns:
        Built flow.

    Raises:
        BuildError: If the declared graph is structurally unsound.
    """
    flow = Flow.create(config.name)
    flow.from_start()
    _link(flow, config.start)

    for activity in config.activities:
        _add_activity(flow, activity)

    logger.debug("Replayed %d activities for flow '%s'", len(config.activities), config.name)
    return flow.build()


def load_flow(source: Union[str, Path, Dict[str, Any]], loader: FlowConfigLoader | None = None) -> Flow:
    """Load and build a flow from a file path or a dictionary.

    Args:
        source: Path to a JSON/YAML file, or a configuration dictionary.
        loader: Loader to use; a default loader when None.

    Returns:
        Built flow.
    """
    loader = loader or FlowConfigLoader()
    if isinstance(source, dict):
        config = loader.load_from_dict(source)
    else:
        config = loader.load_from_file(source)
    return build_flow(config)


def _add_activity(flow: Flow, activity: ActivityConfig) -> None:
    flow.from_activity(activity.id)
    if activity.conditions is None:
        _link(flow, activity.to)
    else:
        _add_block(flow, activity.conditions)


def _add_block(flow: Flow, block: ConditionBlockConfig) -> None:
    for index, branch in enumerate(block.branches):
        if index == 0:
            flow.only_if(branch.when)
        else:
            flow.else_if(branch.when)
        if branch.conditions is not None:
            # only_if() right after only_if()/else_if() opens a nested chain
            _add_block(flow, branch.conditions)
        else:
            _link(flow, branch.to)

    if block.otherwise == END:
        flow.otherwise().to_end()
    else:
        flow.otherwise(block.otherwise)


def _link(flow: Flow, target) -> None:
    if target == END:
        flow.to_end()
    else:
        flow.to(target)
