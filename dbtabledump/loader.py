from configparser import ConfigParser, Error as ConfigParserError
from logging import getLogger
from pathlib import Path

from .dbtypes import TableExportSpec
from .exceptions import ConfigError

logger = getLogger(__name__)

SEQUENCE_KEYS = ("s", "sequence")


def parse_table_specs(text: str, source: str = "<table list>") -> list[TableExportSpec]:
    """
    Read an INI table list; section order is export order.

        [customers]
        id = customer_id
        s = customers_customer_id_seq

        [orders]
        sql = select * from orders where not archived
    """
    parser = ConfigParser(interpolation=None, default_section="DEFAULT")
    try:
        parser.read_string(text, source=source)
    except ConfigParserError as ouch:
        raise ConfigError(f"{source}: {ouch}") from ouch

    specs = []
    for table in parser.sections():
        section = parser[table]
        id_column = section.get("id", "").strip() or None
        sequence = next((section[key].strip() for key in SEQUENCE_KEYS if section.get(key, "").strip()), None)
        if bool(id_column) != bool(sequence):
            raise ConfigError(
                f"{source}: sequence repair needs both 'id' and 's' (got id={id_column!r}, s={sequence!r})",
                table,
            )
        specs.append(
            TableExportSpec(
                table=table,
                sql=section.get("sql", "").strip().rstrip(";"),
                id_column=id_column,
                sequence=sequence,
            )
        )
    if not specs:
        raise ConfigError(f"{source}: no tables listed")
    logger.debug("loaded %d table specs from %s", len(specs), source)
    return specs


def load_table_specs(path: str | Path) -> list[TableExportSpec]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as ouch:
        raise ConfigError(f"could not read table list {path}: {ouch}") from ouch
    return parse_table_specs(text, source=str(path))
