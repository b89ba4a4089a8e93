import re
from typing import Any, List, Optional, Tuple

from compound_common.exceptions.store_exceptions import InvalidFilter
from compound_store.query.predicates import (
    OPERATOR_ALIASES,
    OPERATORS,
    Comparison,
    Conjunction,
    Disjunction,
    Membership,
    Predicate,
)

TOKEN_PATTERN = re.compile(
    r"""
    \s*(?:
        (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
      | (?P<number>[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)
      | (?P<operator>==|!=|<=|>=|=|<|>)
      | (?P<logical>&&|\|\||&|\|)
      | (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<comma>,)
      | (?P<name>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?)
    )
    """,
    re.VERBOSE,
)
ESCAPE = re.compile(r"\\(.)")
LOGICAL_SYMBOLS = {"&": "and", "&&": "and", "|": "or", "||": "or"}


class FilterParser:
    """
    Recursive descent parser for filter expressions, ie

        compound_id == 'HMDB0000001' AND (polarity = 1 OR ms_level IN (2, 3))

    Grammar, AND binding tighter than OR:

        expression  := conjunction (OR conjunction)*
        conjunction := primary (AND primary)*
        primary     := '(' expression ')' | clause
        clause      := column operator literal | column IN '(' literal (',' literal)* ')'
        literal     := quoted string | number | true | false

    Keywords are case insensitive and '&', '&&', '|', '||' may stand in for AND and OR. Column names are returned as
    written, resolving them is left to the query engine.
    """

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = self.tokenize(expression)
        self.position = 0

    @staticmethod
    def parse(expression: str) -> Predicate:
        """
        Parse a filter expression into a predicate tree.
        :param expression: Filter string.
        :return: Predicate tree with unresolved column names.
        """
        parser = FilterParser(expression)
        if not parser.tokens:
            raise InvalidFilter("Empty filter expression")
        predicate = parser._expression()
        if parser._peek() is not None:
            kind, text, offset = parser._peek()
            raise InvalidFilter(f"Unexpected '{text}' at position {offset} in filter '{expression}'")
        return predicate

    @staticmethod
    def tokenize(expression: str) -> List[Tuple[str, str, int]]:
        tokens = []
        position = 0
        while position < len(expression):
            if expression[position:].strip() == "":
                break
            match = TOKEN_PATTERN.match(expression, position)
            if match is None or match.lastgroup is None:
                raise InvalidFilter(f"Cannot read filter '{expression}' at position {position}")
            kind = match.lastgroup
            tokens.append((kind, match.group(kind), match.start(kind)))
            position = match.end()
        return tokens

    def _peek(self) -> Optional[Tuple[str, str, int]]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _next(self, expected: str) -> Tuple[str, str, int]:
        token = self._peek()
        if token is None:
            raise InvalidFilter(f"Filter '{self.expression}' ended early, expected {expected}")
        self.position += 1
        return token

    def _keyword(self) -> Optional[str]:
        token = self._peek()
        if token is None:
            return None
        kind, text, _ = token
        if kind == "logical":
            return LOGICAL_SYMBOLS[text]
        if kind == "name" and text.lower() in ("and", "or", "in"):
            return text.lower()
        return None

    def _expression(self) -> Predicate:
        operands = [self._conjunction()]
        while self._keyword() == "or":
            self.position += 1
            operands.append(self._conjunction())
        return operands[0] if len(operands) == 1 else Disjunction(operands)

    def _conjunction(self) -> Predicate:
        operands = [self._primary()]
        while self._keyword() == "and":
            self.position += 1
            operands.append(self._primary())
        return operands[0] if len(operands) == 1 else Conjunction(operands)

    def _primary(self) -> Predicate:
        kind, text, offset = self._next("a clause")
        if kind == "lparen":
            predicate = self._expression()
            kind, text, offset = self._next("')'")
            if kind != "rparen":
                raise InvalidFilter(f"Expected ')' at position {offset} in filter '{self.expression}', got '{text}'")
            return predicate
        if kind != "name" or text.lower() in ("and", "or", "in", "true", "false"):
            raise InvalidFilter(f"Expected a column name at position {offset} in filter '{self.expression}'")
        return self._clause(text)

    def _clause(self, column: str) -> Predicate:
        if self._keyword() == "in":
            self.position += 1
            kind, text, offset = self._next("'('")
            if kind != "lparen":
                raise InvalidFilter(f"Expected '(' after IN at position {offset} in filter '{self.expression}'")
            values = [self._literal()]
            while True:
                kind, text, offset = self._next("',' or ')'")
                if kind == "rparen":
                    return Membership(column, values)
                if kind != "comma":
                    raise InvalidFilter(f"Expected ',' or ')' at position {offset} in filter '{self.expression}'")
                values.append(self._literal())

        kind, text, offset = self._next("an operator")
        if kind != "operator" or OPERATOR_ALIASES.get(text, text) not in OPERATORS:
            raise InvalidFilter(f"Expected an operator after {column} at position {offset} in filter '{self.expression}'")
        return Comparison(column, text, self._literal())

    def _literal(self) -> Any:
        kind, text, offset = self._next("a value")
        if kind == "string":
            return ESCAPE.sub(r"\1", text[1:-1])
        if kind == "number":
            if re.fullmatch(r"[+-]?\d+", text):
                return int(text)
            return float(text)
        if kind == "name" and text.lower() in ("true", "false"):
            return text.lower() == "true"
        raise InvalidFilter(f"Expected a value at position {offset} in filter '{self.expression}', got '{text}'")
