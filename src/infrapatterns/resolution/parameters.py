"""パラメータ参照・文字列補間・条件式の解決エンジン。

解決処理は例外を送出しない。解決できない参照はデフォルト値または None に
縮退させ、テンプレート作成者が途中結果を確認できるようにする。
"""

import logging
import math
import operator
import re
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from infrapatterns.models.template import (
    BinaryExpression,
    ConditionalValue,
    NotExpression,
    ParameterReference,
    TemplateContext,
    TransformFunction,
)

logger = logging.getLogger(__name__)

_INTERPOLATION = re.compile(r"\{\{(\w+)\}\}")


def stringify_parameter(value: Any) -> str:
    """補間用にパラメータ値を文字列化する。"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify_parameter(v) for v in value)
    return str(value)


def _kebab_case(value: str) -> str:
    return re.sub(r"[^a-z0-9-]", "", re.sub(r"\s+", "-", value.lower()))


def _snake_case(value: str) -> str:
    return re.sub(r"[^a-z0-9_]", "", re.sub(r"\s+", "_", value.lower()))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _join(value: list[Any], separator: str = ",") -> str:
    return separator.join(stringify_parameter(v) for v in value)


def _first(value: list[Any]) -> Any:
    return value[0] if value else None


def _last(value: list[Any]) -> Any:
    return value[-1] if value else None


def _default(value: Any, default_value: Any = None) -> Any:
    return default_value if value is None else value


TRANSFORMS: dict[str, Callable[..., Any]] = {
    "uppercase": lambda value: value.upper(),
    "lowercase": lambda value: value.lower(),
    "kebab-case": _kebab_case,
    "snake-case": _snake_case,
    "multiply": lambda value, factor: value * factor,
    "add": lambda value, addend: value + addend,
    "round": _round_half_up,
    "join": _join,
    "first": _first,
    "last": _last,
    "default": _default,
}


def _is_present(operand: Any) -> bool:
    # 式ノードは常に存在扱い。リテラルは真偽値として判定する。
    return isinstance(operand, BaseModel) or bool(operand)


def _strict_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def _compare(left: Any, right: Any, op: Callable[[Any, Any], Any]) -> bool:
    if left is None or right is None:
        return False
    try:
        return bool(op(left, right))
    except TypeError:
        return False


class ParameterResolver:
    """値・条件式を TemplateContext に対して解決する。"""

    def __init__(self, transforms: dict[str, Callable[..., Any]] | None = None) -> None:
        self._transforms: dict[str, Callable[..., Any]] = dict(TRANSFORMS)
        if transforms:
            self._transforms.update(transforms)

    @property
    def transform_names(self) -> list[str]:
        return sorted(self._transforms)

    def resolve_value(self, value: Any, context: TemplateContext) -> Any:
        """リテラル・パラメータ参照・条件値を具体的な値に解決する。

        Args:
            value: 解決対象の値。
            context: 展開コンテキスト。

        Returns:
            解決後の値。解決できない参照はデフォルト値または None。
        """
        if isinstance(value, str):
            return self.interpolate(value, context)
        if isinstance(value, ParameterReference):
            return self._resolve_reference(value, context)
        if isinstance(value, ConditionalValue):
            # 選択された分岐のみを解決する
            branch = value.true_value if self.evaluate_condition(value.condition, context) else value.false_value
            return self.resolve_value(branch, context)
        if isinstance(value, (BinaryExpression, NotExpression)):
            return self.evaluate_condition(value, context)
        if isinstance(value, list):
            return [self.resolve_value(item, context) for item in value]
        if isinstance(value, dict):
            return {key: self.resolve_value(item, context) for key, item in value.items()}
        return value

    def resolve_configuration(self, configuration: dict[str, Any], context: TemplateContext) -> dict[str, Any]:
        return {key: self.resolve_value(value, context) for key, value in configuration.items()}

    def interpolate(self, text: str, context: TemplateContext) -> str:
        """`{{name}}` トークンをパラメータ値で置換する。未解決のトークンはそのまま残す。"""

        def _replace(match: re.Match[str]) -> str:
            value = context.parameters.get(match.group(1))
            if value is None:
                return match.group(0)
            return stringify_parameter(value)

        return _INTERPOLATION.sub(_replace, text)

    def evaluate_condition(self, expression: Any, context: TemplateContext) -> bool:
        """条件式を評価する。

        `and` / `or` はどちらかのオペランドが欠けている場合、もう一方の値に
        関わらず False を返す。
        """
        if isinstance(expression, NotExpression):
            if not _is_present(expression.operand):
                return False
            return not self._truthy(expression.operand, context)

        if not isinstance(expression, BinaryExpression):
            return False

        op = expression.type
        if op in ("and", "or"):
            if not (_is_present(expression.left) and _is_present(expression.right)):
                return False
            if op == "and":
                return self._truthy(expression.left, context) and self._truthy(expression.right, context)
            return self._truthy(expression.left, context) or self._truthy(expression.right, context)

        left = self.resolve_value(expression.left, context)
        right = self.resolve_value(expression.right, context)

        if op == "equals":
            return _strict_equals(left, right)
        if op == "greater":
            return _compare(left, right, operator.gt)
        if op == "less":
            return _compare(left, right, operator.lt)
        if op == "contains":
            if isinstance(left, (list, tuple, set)):
                return any(_strict_equals(item, right) for item in left)
            if isinstance(left, str) and isinstance(right, str):
                return right in left
            return False
        return False

    def apply_transform(self, value: Any, transform: TransformFunction) -> Any:
        """名前付き変換を適用する。未登録の変換や適用できない値は元の値を返す。"""
        func = self._transforms.get(transform.name)
        if func is None:
            logger.debug("Unknown transform %s; value left unchanged", transform.name)
            return value
        try:
            return func(value, *transform.args)
        except (TypeError, ValueError, AttributeError, IndexError):
            logger.debug("Transform %s could not be applied to %r", transform.name, value)
            return value

    def _resolve_reference(self, reference: ParameterReference, context: TemplateContext) -> Any:
        if reference.name in context.parameters and context.parameters[reference.name] is not None:
            value = context.parameters[reference.name]
            if reference.transform is not None:
                return self.apply_transform(value, reference.transform)
            return value
        return reference.default_value

    def _truthy(self, operand: Any, context: TemplateContext) -> bool:
        if isinstance(operand, (BinaryExpression, NotExpression)):
            return self.evaluate_condition(operand, context)
        return bool(self.resolve_value(operand, context))
