"""
Main entry point for the sqlconnector command line.

Runs single statements against a configured connection.
"""

import argparse
import logging
import sys

import yaml

from sqlconnector.config_loader import load_config, ConfigurationError
from sqlconnector.connectors import (
    ConnectionError,
    DataConstraintError,
    create_connector,
)
from sqlconnector.parameters import QueryParameter
from sqlconnector.reporters import ConsoleReporter, JSONReporter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2
EXIT_CONSTRAINT = 3


def parse_parameter(text: str) -> QueryParameter:
    """
    Parse ``NAME=VALUE`` into an input parameter.

    VALUE is read as a YAML scalar: ``42`` is an int, ``null`` is NULL,
    ``'42'`` is a string.
    """
    name, sep, raw = text.partition('=')
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got {text!r}")
    try:
        value = yaml.safe_load(raw) if raw else None
    except yaml.YAMLError as e:
        raise argparse.ArgumentTypeError(f"Invalid value for {name}: {e}")
    return QueryParameter(name.strip(), value)


def parse_output(text: str) -> QueryParameter:
    """Parse ``NAME`` or ``NAME:SQLTYPE`` into an output parameter."""
    name, _, sql_type = text.partition(':')
    if not name.strip():
        raise argparse.ArgumentTypeError(f"Expected NAME[:SQLTYPE], got {text!r}")
    return QueryParameter(name.strip(), None, is_output=True, sql_type=sql_type.strip() or None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='sqlconnector',
        description='Run parameterized SQL against a configured database',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Verify credentials
  sqlconnector --config connections.yaml check

  # Select rows
  sqlconnector -c connections.yaml query "SELECT * FROM Orders WHERE Id = @Id" -p Id=7

  # Single value as JSON
  sqlconnector -c connections.yaml scalar "SELECT COUNT(*) FROM Orders" --json

  # Stored procedure with an output parameter
  sqlconnector -c connections.yaml execute dbo.CreateOrder --procedure \\
      -p CustomerId=42 --out OrderId:int
'''
    )

    parser.add_argument(
        '--config', '-c',
        required=True,
        help='Path to connections YAML file'
    )

    parser.add_argument(
        '--connection', '-n',
        help='Name of database connection to use (default: first defined)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Log connection and statement details'
    )

    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('check', help='Open and close a connection')

    for name, help_text in [('query', 'Select rows'), ('scalar', 'Select a single value')]:
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument('sql', help='SQL text')
        sub.add_argument('--param', '-p', action='append', default=[], type=parse_parameter,
                         metavar='NAME=VALUE', help='Input parameter (repeatable)')
        sub.add_argument('--json', action='store_true', help='Write JSON instead of a table')

    execute = commands.add_parser('execute', help='Execute a statement or stored procedure')
    execute.add_argument('sql', help='SQL text, or procedure name with --procedure')
    execute.add_argument('--param', '-p', action='append', default=[], type=parse_parameter,
                         metavar='NAME=VALUE', help='Input parameter (repeatable)')
    execute.add_argument('--out', action='append', default=[], type=parse_output,
                         metavar='NAME[:SQLTYPE]', help='Output parameter (repeatable)')
    execute.add_argument('--procedure', action='store_true', help='Call sql as a stored procedure')

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        config = load_config(args.config)
        name = args.connection or config.get_connection_names()[0]
        connector = create_connector(config.get_connection(name))
        logger.info("Using connection %s (%s)", name, connector.connector_type)

        console = ConsoleReporter()

        if args.command == 'check':
            connector.check_connection()
            console.print_status(f"Connected to {name}")

        elif args.command == 'query':
            rows = connector.select(args.sql, args.param, mapper=lambda row: row)
            if args.json:
                JSONReporter().write_rows(rows)
            else:
                console.print_rows(rows)

        elif args.command == 'scalar':
            value = connector.select_value(args.sql, args.param)
            if args.json:
                JSONReporter().write_value(value)
            else:
                console.print_value(value)

        elif args.command == 'execute':
            params = args.param + args.out
            affected = connector.execute(args.sql, params, is_stored_procedure=args.procedure)
            console.print_execution(affected, {p.key: p.value for p in args.out})

        return EXIT_OK

    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except DataConstraintError as e:
        print(f"Constraint violation: {e}", file=sys.stderr)
        return EXIT_CONSTRAINT
    except ConnectionError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        logger.debug("Statement failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())
