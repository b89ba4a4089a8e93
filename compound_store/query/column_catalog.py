from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from compound_common.exceptions.store_exceptions import UnknownColumn
from persistence.db.sqlite import schema
from utils.sqlite_utils import SqliteUtils


@dataclass(frozen=True)
class ColumnRef:
    table: str
    name: str
    affinity: str

    @property
    def is_sequence(self) -> bool:
        return self.name in schema.SEQUENCE_COLUMNS

    @property
    def qualified_name(self) -> str:
        return f"{self.table}.{self.name}"


class ColumnCatalog:
    """
    The public columns of a store's compound and spectrum tables, used to resolve the column names of a query.

    Names resolve against the tables a query reads. A name can be qualified ('compound.mass') to pick its table
    explicitly. A bare name found in both tables is ambiguous, with the exception of compound_id, which is the join key
    and always resolves to the spectrum's own column.
    """

    def __init__(self, columns: Dict[str, List[Tuple[str, str]]]):
        """
        :param columns: dict of table name to a list of (column name, declared type), hidden columns included.
        """
        self._columns: Dict[str, Dict[str, ColumnRef]] = {}
        for table, table_columns in columns.items():
            self._columns[table] = {
                name: ColumnRef(table=table, name=name, affinity=SqliteUtils.affinity(declared))
                for name, declared in table_columns
                if not schema.is_hidden(name)
            }

    def refs(self, table: str) -> List[ColumnRef]:
        return list(self._columns[table].values())

    def resolve(self, name: str, tables: Sequence[str]) -> ColumnRef:
        """
        Resolve a column name against the tables a query reads.
        :param name: Bare or qualified column name.
        :param tables: Tables in scope, the query's own table first.
        :return: ColumnRef for the column.
        """
        if not isinstance(name, str) or not name:
            raise UnknownColumn(repr(name), "column names must be non empty strings")

        if "." in name:
            table, column = name.split(".", 1)
            if table not in tables:
                raise UnknownColumn(name, f"table {table} is not part of this query")
            ref = self._columns.get(table, {}).get(column)
            if ref is None:
                raise UnknownColumn(name, f"no such column in {table}")
            return ref

        matches = [self._columns[table][name] for table in tables if name in self._columns.get(table, {})]
        if not matches:
            raise UnknownColumn(name, f"no such column in {' or '.join(tables)}")
        if len(matches) > 1:
            if name == "compound_id":
                return matches[0]
            raise UnknownColumn(
                name,
                f"ambiguous, present in {' and '.join(ref.table for ref in matches)}, qualify it as "
                f"{' or '.join(ref.qualified_name for ref in matches)}",
            )
        return matches[0]

    def resolve_filterable(self, name: str, tables: Sequence[str]) -> ColumnRef:
        ref = self.resolve(name, tables)
        if ref.is_sequence:
            raise UnknownColumn(name, "sequence columns cannot be filtered on")
        return ref
