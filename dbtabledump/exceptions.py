def sqlfmt(sql: str):
    return "\n".join("\t\t" + line for line in sql.splitlines())


class ExportException(Exception):
    def __init__(self, message, table=None):
        self.message = message
        self.table = table

    def __str__(self):
        table_subject = f"{self.table} : " if self.table else ""
        return f"{table_subject}{self.message}"


class SourceConnectionError(ExportException):
    pass


class ConfigError(ExportException):
    pass


class EncodingError(ExportException):
    pass


class SinkWriteError(ExportException):
    pass


class WriterStateError(ExportException):
    pass


def _detect_error_pattern(error_msg: str, sql: str) -> str | None:
    """
    Detect common error patterns and provide helpful hints.

    Args:
        error_msg: The database error message
        sql: The SQL that was executed

    Returns:
        A helpful hint string, or None if no pattern matches
    """
    error_lower = error_msg.lower()
    sql_lower = sql.lower()

    if "does not exist" in error_lower and "relation" in error_lower:
        return (
            "Missing table: the table (or a table in its custom sql) is not visible to this connection. "
            "Check the section name in the table list and the search_path of the source database."
        )

    if "permission denied" in error_lower:
        return "The exporting role lacks SELECT privilege on this table."

    if "syntax error" in error_lower and sql_lower.rstrip().endswith(";"):
        return "Remove the trailing semicolon from the sql key; queries are executed as given."

    return None


class QueryError(ExportException):
    def __init__(self, message, dberror, table, sql):
        self.message = message
        self.dberror = dberror
        self.table = table
        self.sql = sql

    def __str__(self):
        error_msg = str(self.dberror)
        hint = _detect_error_pattern(error_msg, self.sql)

        result = f"""
            While executing:
            {sqlfmt(self.sql)}

            a DB error was raised:
            {error_msg}
        """

        if hint:
            result += f"\n\nHint: {hint}"

        result += f"""

            while we were exporting the table:
            {self.table}

            furthermore:
            {self.message}
        """

        return result
