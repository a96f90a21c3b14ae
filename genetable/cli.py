"""genetable CLI entry point."""

import argparse
import logging
import sys
from pathlib import Path

from genetable import __version__


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="genetable",
        description="genetable: gene tables with codon usage bias and GC content",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ── table ─────────────────────────────────────────────────────────────
    table_parser = subparsers.add_parser(
        "table", help="Build the gene table for a GenBank record"
    )
    table_parser.add_argument(
        "--genbank", required=True, help="Path to a GenBank flat file"
    )
    table_parser.add_argument(
        "--record", type=str, default=None,
        help="Record id or name to use (default: first record in the file)",
    )
    table_parser.add_argument(
        "--source", default="read", choices=["read", "parsed"],
        help="Annotation form: reader tables or per-type feature lists (default: read)",
    )
    table_parser.add_argument(
        "--stop-rm", action="store_true",
        help="Exclude stop codons from the MILC codon usage statistic",
    )
    table_parser.add_argument(
        "--output", type=str, default=None,
        help="Output TSV path (default: write to stdout)",
    )

    args = parser.parse_args(argv)

    # Set up logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "table":
        return _cmd_table(args)
    else:
        parser.print_help()
        return 1


# ═══════════════════════════════════════════════════════════════════════════════
# Command handlers
# ═══════════════════════════════════════════════════════════════════════════════

def _cmd_table(args: argparse.Namespace) -> int:
    """Handle the table subcommand."""
    from genetable.core.records import GenBankReader, features_from_record, read_genbank
    from genetable.gene_table import gene_table_parsed, gene_table_read

    try:
        record = read_genbank(args.genbank, record_id=args.record)
        if args.source == "parsed":
            table = gene_table_parsed(
                features_from_record(record), record.seq, stop_rm=args.stop_rm,
            )
        else:
            table = gene_table_read(GenBankReader(record), stop_rm=args.stop_rm)
    except (FileNotFoundError, ValueError) as exc:
        logging.error("Gene table failed for %s: %s", args.genbank, exc)
        return 1

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(out_path, sep="\t", index=False)
    else:
        table.to_csv(sys.stdout, sep="\t", index=False)

    n_coding = int(table["cu_bias"].notna().sum())
    print(f"Record: {record.id} ({len(record.seq)} bp)", file=sys.stderr)
    print(f"  Genes: {len(table)} ({n_coding} with codon usage bias)", file=sys.stderr)
    print(f"  Pseudogenes: {int(table['pseudo'].sum())}", file=sys.stderr)
    if table.attrs.get("n_dropped"):
        print(f"  WARNING: {table.attrs['n_dropped']} features dropped "
              f"(no gene name)", file=sys.stderr)
    if args.output:
        print(f"\nGene table written to {args.output}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
