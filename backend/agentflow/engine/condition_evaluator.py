# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Safe Condition Evaluator

Evaluates the branch expression of a condition node against the execution
context. Only two forms are understood:

    true / false                      (case-insensitive)
    <dot.path> <op> <literal>         op: === == !== != > < >= <=

Anything else evaluates to False. Expressions are never handed to eval(),
ast or any other general-purpose evaluator.

Comparison semantics follow the loosely typed rules workflow authors write
conditions against: numeric strings compare equal to numbers, missing paths
resolve to an ``undefined`` value distinct from ``null``, and ordering
operators coerce both sides to numbers (NaN never compares true).
"""

import math
import operator
import re
from typing import Any, Callable, Dict, Mapping


class _Undefined:
    """Value of a path that does not resolve"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()

COMPARISON_PATTERN = re.compile(
    r"([\w.]+)\s*(===|==|!==|!=|>=|<=|>|<)\s*(.+)",
    re.ASCII,
)
QUOTED_PATTERN = re.compile(r"""^['"].*['"]$""", re.DOTALL)
DECIMAL_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)
RADIX_PATTERN = re.compile(r"0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)", re.ASCII)

NUMERIC_OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


def to_number(value: Any) -> float:
    """Numeric conversion with NaN for anything that is not a number"""
    if value is UNDEFINED:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        if DECIMAL_PATTERN.fullmatch(text):
            return float(text)
        if RADIX_PATTERN.fullmatch(text):
            try:
                return float(int(text, 0))
            except OverflowError:
                return math.inf
        return math.nan
    if isinstance(value, (list, tuple)):
        if not value:
            return 0.0
        if len(value) == 1 and not isinstance(value[0], (dict, list, tuple)):
            return to_number("" if value[0] is None else value[0])
        return math.nan
    return math.nan


def resolve_path(context: Mapping[str, Any], path: str) -> Any:
    """Walk a dot-separated path through nested mappings and lists"""
    current: Any = context
    for part in path.split("."):
        if current is None or current is UNDEFINED:
            return UNDEFINED
        if isinstance(current, Mapping):
            current = current.get(part, UNDEFINED)
        elif isinstance(current, (list, tuple)) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else UNDEFINED
        else:
            return UNDEFINED
    return current


def parse_literal(token: str) -> Any:
    """Parse the right-hand side of a comparison"""
    text = token.strip()
    if text == "true":
        return True
    if text == "false":
        return False
    if text == "null":
        return None
    if text == "undefined":
        return UNDEFINED
    if QUOTED_PATTERN.match(text):
        return text[1:-1]
    number = to_number(text)
    if not math.isnan(number):
        return number
    return text


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def loose_equals(left: Any, right: Any) -> bool:
    """Equality with number/string/boolean coercion"""
    if left is UNDEFINED or right is UNDEFINED:
        return left is right
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool) and isinstance(right, bool):
        return left == right
    if isinstance(left, bool):
        return loose_equals(to_number(left), right)
    if isinstance(right, bool):
        return loose_equals(left, to_number(right))
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if _is_number(left) and isinstance(right, str):
        return left == to_number(right)
    if isinstance(left, str) and _is_number(right):
        return to_number(left) == right
    # Structured values only equal themselves
    return left is right


def strict_not_equals(left: Any, right: Any) -> bool:
    """Inequality without type coercion"""
    if left is UNDEFINED or right is UNDEFINED or left is None or right is None:
        return left is not right
    if _is_number(left) and _is_number(right):
        return left != right
    if type(left) is not type(right):
        return True
    if isinstance(left, (bool, str)):
        return left != right
    return left is not right


def evaluate_condition(expression: Any, context: Mapping[str, Any]) -> bool:
    """
    Evaluate a condition expression against the execution context.

    Args:
        expression: Condition string from the node configuration
        context: Execution context (trigger data and node outputs)

    Returns:
        Boolean result. Unsupported or malformed expressions return False.

    Examples:
        >>> evaluate_condition("trigger_data.amount > 100", {"trigger_data": {"amount": 150}})
        True
        >>> evaluate_condition("1; DROP TABLE x", {})
        False
    """
    if not expression or not isinstance(expression, str):
        return False

    text = expression.strip()
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    match = COMPARISON_PATTERN.fullmatch(text)
    if not match:
        return False

    left_path, op, right_token = match.groups()
    left = resolve_path(context, left_path)
    right = parse_literal(right_token)

    if op in ("===", "=="):
        return loose_equals(left, right)
    if op in ("!==", "!="):
        return strict_not_equals(left, right)

    compare = NUMERIC_OPERATORS[op]
    return compare(to_number(left), to_number(right))
