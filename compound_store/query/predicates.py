"""
Filter predicate tree. A filter is built from Comparison and Membership leaves joined by Conjunction (AND) and
Disjunction (OR) nodes. Callers may build a tree directly, or have one parsed from a filter string by FilterParser.

Leaf columns are plain names until the query engine binds them to catalog columns. Bound trees can be rendered to a
parameterised SQL condition, or evaluated against a fetched row. Both follow SQL NULL semantics: any comparison against
an absent value is false.
"""
import operator
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Set, Tuple, Union

OPERATORS = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}
OPERATOR_ALIASES = {"==": "="}


@dataclass(frozen=True)
class Comparison:
    column: Any
    operator: str
    value: Any

    def __post_init__(self):
        # frozen, so normalise through object.__setattr__
        object.__setattr__(self, "operator", OPERATOR_ALIASES.get(self.operator, self.operator))


@dataclass(frozen=True)
class Membership:
    column: Any
    values: Tuple[Any, ...]

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class Conjunction:
    operands: Tuple["Predicate", ...]

    def __post_init__(self):
        object.__setattr__(self, "operands", tuple(self.operands))


@dataclass(frozen=True)
class Disjunction:
    operands: Tuple["Predicate", ...]

    def __post_init__(self):
        object.__setattr__(self, "operands", tuple(self.operands))


Predicate = Union[Comparison, Membership, Conjunction, Disjunction]
LEAVES = (Comparison, Membership)


def conjuncts(predicate: Predicate) -> List[Predicate]:
    """Split a predicate into its top level AND terms."""
    if isinstance(predicate, Conjunction):
        terms = []
        for operand in predicate.operands:
            terms.extend(conjuncts(operand))
        return terms
    return [predicate]


def combine(terms: List[Predicate]) -> Predicate:
    """Inverse of conjuncts."""
    return terms[0] if len(terms) == 1 else Conjunction(terms)


def columns_of(predicate: Predicate) -> Set[Any]:
    if isinstance(predicate, LEAVES):
        return {predicate.column}
    found = set()
    for operand in predicate.operands:
        found |= columns_of(operand)
    return found


def transform_leaves(predicate: Predicate, transform: Callable[[Predicate], Predicate]) -> Predicate:
    """Rebuild a predicate tree with every leaf replaced by transform(leaf)."""
    if isinstance(predicate, LEAVES):
        return transform(predicate)
    return type(predicate)([transform_leaves(operand, transform) for operand in predicate.operands])


def evaluate(predicate: Predicate, row: Mapping[Any, Any]) -> bool:
    """
    Evaluate a bound predicate against a row.
    :param predicate: Predicate tree whose leaf columns are keys of the row.
    :param row: Mapping of column to stored value.
    :return: True if the row satisfies the predicate.
    """
    if isinstance(predicate, Comparison):
        value = row[predicate.column]
        return value is not None and OPERATORS[predicate.operator](value, predicate.value)
    if isinstance(predicate, Membership):
        value = row[predicate.column]
        return value is not None and value in predicate.values
    if isinstance(predicate, Conjunction):
        return all(evaluate(operand, row) for operand in predicate.operands)
    return any(evaluate(operand, row) for operand in predicate.operands)


def to_sql(predicate: Predicate, expression_of: Callable[[Any], str]) -> Tuple[str, List[Any]]:
    """
    Render a bound predicate as a parameterised SQL condition.
    :param predicate: Predicate tree.
    :param expression_of: Function giving the SQL expression for a leaf column, ie 's."polarity"'.
    :return: Tuple of (condition sql, parameter list).
    """
    if isinstance(predicate, Comparison):
        return f"{expression_of(predicate.column)} {predicate.operator} ?", [predicate.value]
    if isinstance(predicate, Membership):
        placeholders = ", ".join("?" for _ in predicate.values)
        return f"{expression_of(predicate.column)} IN ({placeholders})", list(predicate.values)

    joiner = " AND " if isinstance(predicate, Conjunction) else " OR "
    parts, params = [], []
    for operand in predicate.operands:
        sql, operand_params = to_sql(operand, expression_of)
        parts.append(f"({sql})")
        params.extend(operand_params)
    return joiner.join(parts), params
