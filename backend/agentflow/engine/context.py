# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Execution Context

Accumulated state visible to later nodes of a run. Each fold returns a new
snapshot; existing snapshots are never modified, so a step can always be
replayed against exactly the context it saw.
"""

from copy import deepcopy
from typing import Any, Dict, Iterator, List, Mapping

TRIGGER_DATA_KEY = "trigger_data"
CONDITION_RESULT_KEY = "condition_result"

RESERVED_KEYS = frozenset({TRIGGER_DATA_KEY, CONDITION_RESULT_KEY})


class ExecutionContext(Mapping[str, Any]):
    """
    Immutable snapshot of an execution's context.

    Tracks:
    - The trigger payload under ``trigger_data``
    - One entry per visited node, keyed by node id
    - ``condition_result`` from the most recent condition node
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] = None):
        self._data: Dict[str, Any] = dict(data or {})

    @classmethod
    def start(cls, trigger_data: Any) -> "ExecutionContext":
        """Initial context for a run"""
        return cls({TRIGGER_DATA_KEY: deepcopy(trigger_data)})

    def with_entry(self, key: str, value: Any) -> "ExecutionContext":
        """Return a new snapshot with key set to value"""
        data = dict(self._data)
        data[key] = deepcopy(value)
        return ExecutionContext(data)

    def with_condition_result(self, result: bool) -> "ExecutionContext":
        return self.with_entry(CONDITION_RESULT_KEY, bool(result))

    @property
    def trigger_data(self) -> Any:
        return self._data.get(TRIGGER_DATA_KEY)

    @property
    def condition_result(self) -> bool:
        return bool(self._data.get(CONDITION_RESULT_KEY, False))

    def key_list(self) -> List[str]:
        return list(self._data.keys())

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy as a plain dict, for the condition evaluator boundary"""
        return deepcopy(self._data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ExecutionContext(keys={self.key_list()!r})"
