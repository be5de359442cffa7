"""
Sample runner: the three client usage examples (mixed-type SELECT, parameterized
INSERT, metadata queries) run against the configured database.

Usage
-----
    python -m colquery.samples multi-type
    python -m colquery.samples insert --config my_config.yaml
    python -m colquery.samples metadata -v

Exits 0 on success, 1 when any phase (connect / query / scan) fails.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Mapping

from colquery.config.settings import ConnectionConfig, load_config
from colquery.query.errors import QueryExecutorError
from colquery.query.executor import Query, execute
from colquery.query.metadata import current_user, server_version
from colquery.query.schema import ColumnType, optional
from colquery.utils.db_connector import Connection, get_connection
from colquery.utils.logger import logger_from_config

MULTI_TYPE_QUERY = "SELECT 1 AS test_int, 'Snowflake Version' AS test_string, '2024-12-13' AS test_date"
INSERT_QUERY = "INSERT INTO todo (id, created_by, title, description, status) VALUES (?, ?, ?, ?, ?)"
INSERT_PARAMS = (99999, 54234, "test3", "clickhouse", True)


def multi_type(conn: Connection, logger: logging.Logger) -> None:
    schema = (optional(ColumnType.INT64), ColumnType.STRING, ColumnType.STRING)
    with execute(conn, MULTI_TYPE_QUERY, schema) as rows:
        for test_int, test_string, test_date in rows:
            logger.info("Result: test_int=%s, test_string=%s, test_date=%s", test_int, test_string, test_date)


def insert(conn: Connection, logger: logging.Logger) -> None:
    ack = execute(conn, Query(INSERT_QUERY, INSERT_PARAMS))
    logger.info("Insert query executed successfully (rowcount=%s).", ack.rowcount)


def metadata(conn: Connection, logger: logging.Logger) -> None:
    logger.info("Result: %s", server_version(conn))
    logger.info("Result: %s", current_user(conn))


SAMPLES: dict[str, Callable[[Connection, logging.Logger], None]] = {
    "multi-type": multi_type,
    "insert": insert,
    "metadata": metadata,
}


def run_sample(
    name: str,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    verbose: bool = False,
) -> bool:
    """Run one sample. Returns True on success; False after logging the failed phase."""
    config = load_config(config_path)
    logger = logger_from_config(config.get("logging"), verbose=verbose)

    sample = SAMPLES[name]
    try:
        db_config = ConnectionConfig.from_mapping(config.get("database"), env=env)
        logger.info("Running sample %s against %r", name, db_config)
        with get_connection(db_config) as conn:
            sample(conn, logger)
    except QueryExecutorError as e:
        logger.error("%s", e)
        return False

    logger.info("Sample %s finished successfully", name)
    return True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run colquery usage samples")
    parser.add_argument("sample", choices=sorted(SAMPLES), help="Sample to run")
    parser.add_argument("--config", default=None, help="YAML config file (default: packaged config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    success = run_sample(args.sample, args.config, verbose=args.verbose)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
