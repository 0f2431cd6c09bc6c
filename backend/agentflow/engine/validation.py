# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Validation

Structural checks applied when a workflow definition is stored. Cycles are
allowed: loops are bounded at run time by the step ceiling.
"""

from typing import Set

from .context import RESERVED_KEYS
from .exceptions import WorkflowValidationError
from .models import EdgeHandle, NodeType, Workflow

VALID_HANDLES: Set[str] = {handle.value for handle in EdgeHandle}


def validate_workflow(workflow: Workflow) -> None:
    """
    Validate workflow structure.

    Raises WorkflowValidationError if validation fails.
    """
    # 1. Empty workflow check
    if len(workflow.nodes) == 0:
        raise WorkflowValidationError("Workflow must have at least one node", field="nodes")

    # 2. Duplicate node IDs
    node_ids = [node.id for node in workflow.nodes]
    if len(node_ids) != len(set(node_ids)):
        duplicates = sorted({nid for nid in node_ids if node_ids.count(nid) > 1})
        raise WorkflowValidationError(f"Duplicate node IDs found: {duplicates}", field="nodes")

    # 3. Node ids share the context namespace with reserved keys
    reserved = sorted(set(node_ids) & RESERVED_KEYS)
    if reserved:
        raise WorkflowValidationError(f"Reserved node IDs not allowed: {reserved}", field="nodes")

    # 4. Exactly one trigger
    triggers = [node.id for node in workflow.nodes if node.node_type == NodeType.TRIGGER]
    if len(triggers) != 1:
        raise WorkflowValidationError(
            f"Workflow must have exactly one trigger node, found {len(triggers)}",
            field="nodes",
        )

    # 5. Edge references and handles
    node_types = {node.id: node.node_type for node in workflow.nodes}
    for edge in workflow.edges:
        for endpoint in (edge.source_node_id, edge.target_node_id):
            if endpoint not in node_types:
                raise WorkflowValidationError(
                    f"Edge references non-existent node: {endpoint}",
                    field="edges",
                )
        if (
            node_types[edge.source_node_id] == NodeType.CONDITION
            and edge.source_handle is not None
            and edge.source_handle not in VALID_HANDLES
        ):
            raise WorkflowValidationError(
                f"Invalid source handle on condition edge {edge.id}: {edge.source_handle!r}",
                field="edges",
            )
