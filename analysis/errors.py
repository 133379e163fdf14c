#!/usr/bin/env python3
"""
Pipeline Errors

Exceptions raised by the loading, reshaping, joining and aggregation steps.
None of them is recovered from: they abort the report run.
"""

from typing import List, Sequence


class FetchError(RuntimeError):
    """Raised when a source table cannot be downloaded or parsed"""

    def __init__(self, name: str, url: str, reason: str) -> None:
        """
        Initialise the error

        Args:
            name: Name of the resource (e.g. 'us_cases')
            url: URL the resource was requested from
            reason: Description of what went wrong
        """
        self.name = name
        self.url = url
        super().__init__(f"Could not fetch {name!r} from {url}: {reason}")


class SchemaError(ValueError):
    """Raised when a table is missing expected columns or carries unexpected ones"""

    def __init__(self, table: str, missing: Sequence[str] = (),
                 unexpected: Sequence[str] = ()) -> None:
        self.table = table
        self.missing: List[str] = list(missing)
        self.unexpected: List[str] = list(unexpected)

        problems = []
        if self.missing:
            problems.append(f"missing columns {self.missing}")
        if self.unexpected:
            problems.append(f"unexpected columns {self.unexpected}")
        super().__init__(f"Schema mismatch in {table}: {'; '.join(problems)}")


class DateParseError(ValueError):
    """Raised when date values or headers do not match the configured date format"""

    def __init__(self, table: str, bad_values: Sequence[str], date_format: str) -> None:
        self.table = table
        self.bad_values: List[str] = list(bad_values)
        shown = self.bad_values[:10]
        super().__init__(
            f"{len(self.bad_values)} date value(s) in {table} do not match "
            f"{date_format!r}, e.g. {shown}"
        )


class JoinAmbiguityError(ValueError):
    """Raised when a join key is not unique and the join would multiply rows"""

    def __init__(self, table: str, keys: Sequence[str], duplicates) -> None:
        """
        Initialise the error

        Args:
            table: Name of the table whose keys are duplicated
            keys: Join key columns
            duplicates: DataFrame of the duplicated key combinations
        """
        self.table = table
        self.keys = list(keys)
        self.duplicates = duplicates
        super().__init__(
            f"Join keys {self.keys} are not unique in {table} "
            f"({len(duplicates)} duplicated combinations):\n{duplicates.head(10)}"
        )
