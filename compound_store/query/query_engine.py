from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import pandas as pd

from compound_common.exceptions.store_exceptions import InvalidFilter
from compound_store.query.column_catalog import ColumnCatalog, ColumnRef
from compound_store.query.filter_parser import FilterParser
from compound_store.query.predicates import (
    LEAVES,
    OPERATORS,
    Comparison,
    Conjunction,
    Disjunction,
    Membership,
    Predicate,
    columns_of,
    combine,
    conjuncts,
    evaluate,
    to_sql,
    transform_leaves,
)
from persistence.db.sqlite import schema
from persistence.db.sqlite.sqlite_client import SqliteWrapper
from utils.sqlite_utils import SqliteUtils

TABLE_ALIASES = {schema.SPECTRUM_TABLE: "s", schema.COMPOUND_TABLE: "c"}

# each spectrum joins exactly one compound row: the one it was submitted with, else the first with its compound_id
SPECTRUM_COMPOUND_JOIN = (
    'LEFT JOIN "compound" c ON c."_compound_row" = COALESCE('
    's."_compound_row", '
    '(SELECT MIN(c2."_compound_row") FROM "compound" c2 WHERE c2."compound_id" = s."compound_id"))'
)

Projection = Union[str, Sequence[str], None]
Filter = Union[str, Predicate, None]


@dataclass
class QueryPlan:
    sql: str
    params: List[Any]
    selected: List[ColumnRef]
    projection: List[Tuple[str, ColumnRef]]
    residual: Optional[Predicate]

    @property
    def output_columns(self) -> List[str]:
        return [name for name, _ in self.projection]


class QueryEngine:
    """
    Answers compound and spectrum queries against a store, under a column projection and an optional filter.

    Everything that can go wrong with a query (unknown or ambiguous columns, filter syntax, literals of the wrong type)
    is raised when the query method is called, before any row is read. The rows themselves are streamed by a generator
    that opens its own read only connection on first use, so queries can be consumed on worker threads and abandoning
    a generator releases its connection.

    With pushdown enabled the simple top level AND terms of a filter are handed to SQLite as a WHERE clause, anything
    else is evaluated row by row after the join. Literals are coerced to their column's type up front, so both routes
    select the same rows in the same order.
    """

    def __init__(self, location: str, catalog: ColumnCatalog, pushdown: bool = True):
        self.location = location
        self.catalog = catalog
        self.pushdown = pushdown

    def compounds(self, projection: Projection = None, filter: Filter = None) -> Iterator[Dict[str, Any]]:
        """
        Query the compound table.
        :param projection: Column name or list of column names, defaults to every compound column.
        :param filter: Filter expression string or predicate tree, optional.
        :return: Lazy iterator of dicts keyed by the projected column names, in insertion order.
        """
        plan = self.plan(schema.COMPOUND_TABLE, projection, filter)
        return self._stream(plan)

    def spectra(self, projection: Projection = None, filter: Filter = None) -> Iterator[Dict[str, Any]]:
        """
        Query the spectrum table. Compound columns may be projected and filtered on too, in which case every spectrum
        is joined to its compound. Spectra whose compound_id matches no compound keep None for compound columns.
        :param projection: Column name or list of column names, defaults to every spectrum column.
        :param filter: Filter expression string or predicate tree, optional.
        :return: Lazy iterator of dicts keyed by the projected column names, one per matching spectrum.
        """
        plan = self.plan(schema.SPECTRUM_TABLE, projection, filter)
        return self._stream(plan)

    def compounds_frame(self, projection: Projection = None, filter: Filter = None) -> pd.DataFrame:
        plan = self.plan(schema.COMPOUND_TABLE, projection, filter)
        return pd.DataFrame(list(self._stream(plan)), columns=plan.output_columns)

    def spectra_frame(self, projection: Projection = None, filter: Filter = None) -> pd.DataFrame:
        plan = self.plan(schema.SPECTRUM_TABLE, projection, filter)
        return pd.DataFrame(list(self._stream(plan)), columns=plan.output_columns)

    def plan(self, table: str, projection: Projection, filter: Filter) -> QueryPlan:
        """
        Compile a query into SQL plus a residual predicate.
        :param table: Table the query returns rows of, compound or spectrum.
        :param projection: Requested columns.
        :param filter: Filter expression string or predicate tree.
        :return: QueryPlan ready to be streamed.
        """
        tables = [table] if table == schema.COMPOUND_TABLE else [schema.SPECTRUM_TABLE, schema.COMPOUND_TABLE]
        resolved = self._resolve_projection(table, projection, tables)
        predicate = self._bind_filter(filter, tables)

        pushed: List[Predicate] = []
        residual = None
        if predicate is not None:
            if self.pushdown:
                terms = conjuncts(predicate)
                pushed = [term for term in terms if isinstance(term, LEAVES)]
                remaining = [term for term in terms if not isinstance(term, LEAVES)]
                residual = combine(remaining) if remaining else None
            else:
                residual = predicate

        selected: List[ColumnRef] = []
        for ref in [ref for _, ref in resolved] + sorted(
            columns_of(residual) if residual is not None else [], key=lambda ref: ref.qualified_name
        ):
            if ref not in selected:
                selected.append(ref)
        referenced = set(selected)
        for term in pushed:
            referenced |= columns_of(term)

        sql = f"SELECT {', '.join(self._expression(ref) for ref in selected)} FROM {self._quote(table)} "
        sql += TABLE_ALIASES[table]
        if table == schema.SPECTRUM_TABLE and any(ref.table == schema.COMPOUND_TABLE for ref in referenced):
            sql += f" {SPECTRUM_COMPOUND_JOIN}"

        params: List[Any] = []
        if pushed:
            condition, params = to_sql(combine(pushed), self._expression)
            sql += f" WHERE {condition}"
        sql += f" ORDER BY {TABLE_ALIASES[table]}.rowid"
        return QueryPlan(sql=sql, params=params, selected=selected, projection=resolved, residual=residual)

    def _resolve_projection(
        self, table: str, projection: Projection, tables: List[str]
    ) -> List[Tuple[str, ColumnRef]]:
        if projection is None:
            return [(ref.name, ref) for ref in self.catalog.refs(table)]
        if isinstance(projection, str):
            projection = [projection]
        projection = list(projection)
        if not projection:
            raise ValueError("Projection must name at least one column, pass None for all columns")

        resolved: List[Tuple[str, ColumnRef]] = []
        seen = set()
        for name in projection:
            ref = self.catalog.resolve(name, tables)
            if ref in seen:
                continue
            seen.add(ref)
            resolved.append((name, ref))
        return resolved

    def _bind_filter(self, filter: Filter, tables: List[str]) -> Optional[Predicate]:
        if filter is None:
            return None
        if isinstance(filter, str):
            filter = FilterParser.parse(filter)
        if not isinstance(filter, (Comparison, Membership, Conjunction, Disjunction)):
            raise InvalidFilter(f"Filter must be an expression string or a predicate, got {type(filter).__name__}")

        def bind(leaf: Predicate) -> Predicate:
            ref = self.catalog.resolve_filterable(leaf.column, tables)
            if isinstance(leaf, Comparison):
                if leaf.operator not in OPERATORS:
                    raise InvalidFilter(f"Unknown operator '{leaf.operator}' in filter on {leaf.column}")
                return Comparison(ref, leaf.operator, self.coerce_literal(ref, leaf.value))
            if not leaf.values:
                raise InvalidFilter(f"IN filter on {leaf.column} needs at least one value")
            return Membership(ref, [self.coerce_literal(ref, value) for value in leaf.values])

        return transform_leaves(filter, bind)

    @staticmethod
    def coerce_literal(ref: ColumnRef, value: Any) -> Any:
        """
        Coerce a filter literal to the type of the column it is compared with.
        :param ref: Column the literal is compared with.
        :param value: Literal as parsed or supplied.
        :return: Value of the column's type.
        """
        if value is None:
            raise InvalidFilter(f"Cannot compare {ref.name} with a null value")

        if ref.affinity == "TEXT":
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                raise InvalidFilter(f"{ref.name} holds text, cannot compare it with {value!r}")
            return value if isinstance(value, str) else str(value)

        if isinstance(value, bool):
            return int(value) if ref.affinity == "INTEGER" else float(value)
        if isinstance(value, (int, float)):
            return float(value) if ref.affinity == "REAL" else value
        if isinstance(value, str):
            try:
                number = float(value)
            except ValueError:
                raise InvalidFilter(f"{ref.name} holds numbers, cannot compare it with '{value}'") from None
            if ref.affinity == "INTEGER" and number.is_integer():
                return int(number)
            return number
        raise InvalidFilter(f"{ref.name} holds numbers, cannot compare it with {value!r}")

    def _stream(self, plan: QueryPlan) -> Iterator[Dict[str, Any]]:
        client = SqliteWrapper(self.location, read_only=True)
        cursor = None
        try:
            cursor = client.execute(plan.sql, plan.params)
            for values in cursor:
                row = dict(zip(plan.selected, values))
                if plan.residual is not None and not evaluate(plan.residual, row):
                    continue
                yield {name: self._decode(ref, row[ref]) for name, ref in plan.projection}
        finally:
            if cursor is not None:
                cursor.close()
            client.close()

    @staticmethod
    def _decode(ref: ColumnRef, value: Any) -> Any:
        # a sequence column is only NULL when the compound side of a join is missing
        if ref.is_sequence and value is not None:
            return SqliteUtils.unpack_sequence(value)
        return value

    @staticmethod
    def _expression(ref: ColumnRef) -> str:
        return f"{TABLE_ALIASES[ref.table]}.{SqliteUtils.quote_identifier(ref.name)}"

    @staticmethod
    def _quote(name: str) -> str:
        return SqliteUtils.quote_identifier(name)
