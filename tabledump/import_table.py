# import_table.py
import argparse
import sys

from tabledump.common import add_connection_args, config_from_args, run_command, setup_logging
from tabledump.dynamo_store import DynamoStore
from tabledump.import_pipeline import import_file


def main(argv=None):
    ap = argparse.ArgumentParser(description="Replay a dump file into a table in atomic batches of 100 rows.")
    ap.add_argument("--table", required=True, help="Target table name (must already exist)")
    ap.add_argument("--in", dest="in_path", required=True, help="Input file path (written by tabledump-export)")
    ap.add_argument("--dry-run", action="store_true", help="Parse and decode only; do not write")
    add_connection_args(ap)
    args = ap.parse_args(argv)

    setup_logging(args.verbose)
    try:
        config = config_from_args(args)
    except ValueError as e:
        ap.error(str(e))

    def run():
        store = DynamoStore(config)
        if not args.dry_run:
            store.check_table(args.table)
        result = import_file(store, args.table, args.in_path, dry_run=args.dry_run)
        print(
            f"Imported {result.rows} rows into '{args.table}' in {result.batches} batches"
            f"{' (dry-run, nothing written)' if result.dry_run else ''}"
        )

    return run_command(run)


if __name__ == "__main__":
    sys.exit(main())
