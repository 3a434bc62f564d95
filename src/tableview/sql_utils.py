from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

_NUMERIC_TERM_RE = re.compile(r"[0-9]+")
# Largest value a signed BIGINT column can hold.
_EXACT_MATCH_MAX = 2**63 - 1


def quote_identifier(name: str) -> str:
    """Return a backtick-quoted MySQL identifier, doubling embedded backticks."""
    return "`" + name.replace("`", "``") + "`"


def rows_to_records(rows: Optional[Iterable[Mapping[str, Any]]]) -> list[dict[str, Any]]:
    """Coerce DictCursor rows into a list of plain dicts, keeping column order."""
    if not rows:
        return []
    return [dict(row) for row in rows]


def table_names(rows: Iterable[Mapping[str, Any]]) -> list[str]:
    """
    Flatten ``SHOW TABLES`` rows into names.

    MySQL labels the single column ``Tables_in_<database>``, so the first value of
    each row is taken regardless of its key.
    """
    return [str(next(iter(row.values()))) for row in rows if row]


def is_numeric_term(term: str) -> bool:
    """True when the search term is made of ASCII digits only."""
    return bool(_NUMERIC_TERM_RE.fullmatch(term))


def exact_match_value(term: str) -> Optional[int]:
    """Integer for an equality match on ``term``, or ``None`` when it is not a BIGINT."""
    if not is_numeric_term(term):
        return None
    digits = term.lstrip("0") or "0"
    if len(digits) > len(str(_EXACT_MATCH_MAX)):
        return None
    value = int(digits)
    return value if value <= _EXACT_MATCH_MAX else None


@dataclass(frozen=True)
class SearchProfile:
    """Shape of the live-search query for one deployment."""

    table: str
    columns: tuple[str, ...]
    like_columns: tuple[str, ...]
    exact_column: Optional[str] = None
    limit: int = 25


PEOPLE_PROFILE = SearchProfile(
    table="people",
    columns=("id", "name", "age", "location"),
    like_columns=("name", "location", "bio"),
    exact_column="age",
    limit=25,
)

ITEMS_PROFILE = SearchProfile(
    table="items",
    columns=("id", "name"),
    like_columns=("name",),
    limit=10,
)

SEARCH_PROFILES = {"people": PEOPLE_PROFILE, "items": ITEMS_PROFILE}


def build_search_query(term: str, profile: SearchProfile) -> tuple[str, list[Any]]:
    """
    Build the parameterised search statement for ``term``.

    Every ``like_columns`` entry gets a ``LIKE %term%`` clause. When the profile has an
    ``exact_column`` and the term is all digits, an equality clause on that column is
    added with the parsed integer, as long as it fits a BIGINT. Values are always
    bound parameters.
    """
    like = f"%{term}%"
    clauses = [f"{quote_identifier(col)} LIKE %s" for col in profile.like_columns]
    params: list[Any] = [like] * len(profile.like_columns)

    exact = exact_match_value(term) if profile.exact_column else None
    if exact is not None:
        clauses.append(f"{quote_identifier(profile.exact_column)} = %s")
        params.append(exact)

    column_list = ", ".join(quote_identifier(col) for col in profile.columns)
    sql = (
        f"SELECT {column_list}\n"
        f"FROM {quote_identifier(profile.table)}\n"
        f"WHERE " + "\n   OR ".join(clauses) + "\n"
        f"LIMIT {int(profile.limit)}"
    )
    return sql, params


def first_record_columns(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    """Column order of a RowSet, taken from the keys of its first record."""
    if not rows:
        return []
    return list(rows[0].keys())
