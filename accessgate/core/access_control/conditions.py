from typing import Any, Callable, Dict, Iterable, Mapping

from .models import Condition, ConditionOperator


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _kind(value: Any) -> type:
    """Comparison kind of a value; ints and floats share one kind"""
    if _is_number(value):
        return float
    if isinstance(value, (list, tuple, set, frozenset)):
        return list
    return type(value)


def _same(left: Any, right: Any) -> bool:
    return _kind(left) is _kind(right) and left == right


class ConditionEvaluator:
    """Evaluates policy conditions against a flat attribute map.

    Every operator is total over the supported value kinds: a kind mismatch
    evaluates to False instead of coercing, and an unknown operator evaluates
    to False instead of raising.
    """

    def __init__(self):
        self._operators: Dict[ConditionOperator, Callable[[Mapping[str, Any], str, Any], bool]] = {
            ConditionOperator.EQUALS: lambda attrs, key, value: _same(attrs.get(key), value),
            ConditionOperator.NOT_EQUALS: lambda attrs, key, value: not _same(attrs.get(key), value),
            ConditionOperator.IN: self._in,
            ConditionOperator.NOT_IN: self._not_in,
            ConditionOperator.CONTAINS: self._contains,
            ConditionOperator.STARTS_WITH: self._starts_with,
            ConditionOperator.ENDS_WITH: self._ends_with,
            ConditionOperator.GREATER_THAN: self._ordered(lambda a, b: a > b),
            ConditionOperator.LESS_THAN: self._ordered(lambda a, b: a < b),
            ConditionOperator.GREATER_THAN_OR_EQUAL: self._ordered(lambda a, b: a >= b),
            ConditionOperator.LESS_THAN_OR_EQUAL: self._ordered(lambda a, b: a <= b),
            ConditionOperator.EXISTS: lambda attrs, key, value: attrs.get(key) is not None,
            ConditionOperator.NOT_EXISTS: lambda attrs, key, value: attrs.get(key) is None,
        }

    def evaluate(self, condition: Condition, attributes: Mapping[str, Any]) -> bool:
        """Evaluate a condition against provided attributes"""
        try:
            operator = ConditionOperator(condition.operator)
        except ValueError:
            return False

        return bool(self._operators[operator](attributes, condition.attribute, condition.value))

    def evaluate_all(self, conditions: Iterable[Condition], attributes: Mapping[str, Any]) -> bool:
        """AND over the conditions; stops at the first failing one"""
        return all(self.evaluate(condition, attributes) for condition in conditions)

    @staticmethod
    def _in(attributes: Mapping[str, Any], key: str, value: Any) -> bool:
        if not isinstance(value, list):
            return False
        attr_value = attributes.get(key)
        return any(_same(attr_value, item) for item in value)

    @staticmethod
    def _not_in(attributes: Mapping[str, Any], key: str, value: Any) -> bool:
        if not isinstance(value, list):
            return False
        attr_value = attributes.get(key)
        return not any(_same(attr_value, item) for item in value)

    @staticmethod
    def _contains(attributes: Mapping[str, Any], key: str, value: Any) -> bool:
        attr_value = attributes.get(key)
        if isinstance(attr_value, str):
            return isinstance(value, str) and value in attr_value
        if isinstance(attr_value, (list, tuple, set, frozenset)):
            return any(_same(item, value) for item in attr_value)
        return False

    @staticmethod
    def _starts_with(attributes: Mapping[str, Any], key: str, value: Any) -> bool:
        attr_value = attributes.get(key)
        return isinstance(attr_value, str) and isinstance(value, str) and attr_value.startswith(value)

    @staticmethod
    def _ends_with(attributes: Mapping[str, Any], key: str, value: Any) -> bool:
        attr_value = attributes.get(key)
        return isinstance(attr_value, str) and isinstance(value, str) and attr_value.endswith(value)

    @staticmethod
    def _ordered(comparator: Callable[[Any, Any], bool]):
        """Numbers compare with numbers, strings with strings, nothing else"""
        def compare(attributes: Mapping[str, Any], key: str, value: Any) -> bool:
            attr_value = attributes.get(key)
            if _is_number(attr_value) and _is_number(value):
                return comparator(attr_value, value)
            if isinstance(attr_value, str) and isinstance(value, str):
                return comparator(attr_value, value)
            return False

        return compare
