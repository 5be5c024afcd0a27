# export_table.py
import argparse
import sys

from tabledump.common import add_connection_args, config_from_args, run_command, setup_logging
from tabledump.dynamo_store import DynamoStore
from tabledump.export_pipeline import export_table_to_file


def main(argv=None):
    ap = argparse.ArgumentParser(description="Dump a table to a self-describing text file (header + one JSON row per line).")
    ap.add_argument("--table", required=True, help="Source table name")
    ap.add_argument("--out", required=True, help="Output file path (e.g., users.dump)")
    ap.add_argument("--limit", type=int, help="Optional limit for quick tests")
    add_connection_args(ap)
    args = ap.parse_args(argv)
    if args.limit is not None and args.limit < 1:
        ap.error("--limit must be at least 1")

    setup_logging(args.verbose)
    try:
        config = config_from_args(args)
    except ValueError as e:
        ap.error(str(e))

    def run():
        store = DynamoStore(config)
        store.check_table(args.table)
        count = export_table_to_file(store, args.table, args.out, limit=args.limit)
        print(f"Exported {count} rows from '{args.table}' to {args.out}")

    return run_command(run)


if __name__ == "__main__":
    sys.exit(main())
