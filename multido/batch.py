"""
Run several SQL statements through a DB‑API connection that only accepts one
statement per ``execute()`` call.

    >>> import sqlite3
    >>> from multido import Batch
    >>> batch = Batch(sqlite3.connect(":memory:"))
    >>> batch.execute("CREATE TABLE foo (a, b); CREATE TABLE bar (c, d);")
    [-1, -1]

With ``rollback=True`` (the default) the whole batch is one transaction: it
is committed when every statement succeeds, and rolled back when any of them
fails, in which case an empty list is returned.  With ``rollback=False`` the
connection's own commit mode applies and the results of the statements that
ran before the failing one are returned.
"""
from __future__ import annotations

import logging
import typing as t

from multido.driver import error_class, manual_commit, run_statement
from multido.splitter import Splitter, split as _default_split

log = logging.getLogger(__name__)

BindValues = t.Sequence[t.Optional[t.Sequence[t.Any]]]


class Batch:
    """
    Executes multi‑statement SQL code against *dbh*, one statement at a time.

    *dbh* is owned by the caller and is never closed here.
    *splitter_options* is handed unmodified to :class:`~multido.splitter.Splitter`;
    leave it alone unless the target database really needs something else.
    """

    def __init__(
        self,
        dbh,
        *,
        rollback: bool = True,
        splitter_options: dict[str, bool] | None = None,
    ) -> None:
        self.dbh = dbh
        self.rollback: bool = rollback
        self.splitter_options = splitter_options
        self.last_error: Exception | None = None

    @property
    def splitter_options(self) -> dict[str, bool] | None:
        return self._splitter_options

    @splitter_options.setter
    def splitter_options(self, options: dict[str, bool] | None) -> None:
        self._splitter = Splitter(**(options or {}))
        self._splitter_options = options

    @property
    def splitter(self) -> Splitter:
        """The splitter built from ``splitter_options``."""
        return self._splitter

    @property
    def errstr(self) -> str | None:
        """Text of the driver error that stopped the last batch, if any."""
        return str(self.last_error) if self.last_error is not None else None

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def execute(
        self,
        sql: str | t.Sequence[str],
        attr: dict[str, t.Any] | None = None,
        bind_values: BindValues | None = None,
    ) -> list[int]:
        """
        Execute every statement of *sql*, in order, and return their rowcounts.

        *attr* is passed to ``dbh.cursor()`` for each statement.  *bind_values*
        holds one entry per statement, ``None`` (or empty) when a statement has
        no parameters; missing trailing entries are treated as ``None`` and
        extra entries are ignored.
        """
        _, results = self._run(sql, attr, bind_values)
        return results

    def execute_ok(
        self,
        sql: str | t.Sequence[str],
        attr: dict[str, t.Any] | None = None,
        bind_values: BindValues | None = None,
    ) -> bool:
        """Like :meth:`execute`, but only tell whether every statement ran."""
        statements, results = self._run(sql, attr, bind_values)
        return len(results) == len(statements)

    def split(self, sql: str) -> list[str]:
        """Split *sql* with the default splitter, ignoring ``splitter_options``."""
        return _default_split(sql)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #
    def _run(self, sql, attr, bind_values) -> tuple[list[str], list[int]]:
        statements = self._splitter.split(sql) if isinstance(sql, str) else list(sql)
        self.last_error = None
        db_error = error_class(self.dbh)

        if not self.rollback:
            results, _ = self._do_statements(statements, attr, bind_values, db_error)
            return statements, results

        with manual_commit(self.dbh):
            try:
                results, failed = self._do_statements(statements, attr, bind_values, db_error)
                if not failed:
                    self.dbh.commit()
            except db_error as exc:
                self._record(exc)
                failed = True
            except BaseException:
                self._rollback()
                raise
            if failed:
                self._rollback()
                return statements, []
        return statements, results

    def _do_statements(self, statements, attr, bind_values, db_error) -> tuple[list[int], bool]:
        """Run *statements* until the first driver error; report whether one occurred."""
        bind_values = bind_values or []
        results: list[int] = []

        for idx, statement in enumerate(statements):
            params = bind_values[idx] if idx < len(bind_values) else None
            log.debug("Executing statement %d/%d: %s", idx + 1, len(statements), statement)
            try:
                results.append(run_statement(self.dbh, statement, attr, params))
            except db_error as exc:
                self._record(exc, idx)
                return results, True
        return results, False

    def _record(self, exc: Exception, idx: int | None = None) -> None:
        self.last_error = exc
        where = f"statement {idx + 1}" if idx is not None else "commit"
        log.warning("Batch stopped at %s: %s", where, exc)

    def _rollback(self) -> None:
        try:
            self.dbh.rollback()
        except Exception as exc:  # best-effort cleanup
            log.warning("Rollback failed: %s", exc)
