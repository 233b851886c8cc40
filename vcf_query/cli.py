"""Command line interface for vcf_query.

Subcommands:
	filter    – keep records matching one or more expressions
	count     – count records per value of a field
	tally     – count records matching each of several labelled expressions
	transform – rewrite records with another delimiter and/or column labels
	stats     – per-chromosome counts, PASS/QUAL tallies and plots

Example:
	vcf-query filter --vcf calls.vcf.gz -e 'QUAL > 50' -e 'FILTER == PASS'
	vcf-query count --vcf calls.vcf --by CHROM
	vcf-query transform --vcf calls.vcf --delimiter comma --relabel CHROM=Chromosome

Exit status is 0 on success (also when nothing matches), 1 on malformed
input and 2 on an invalid expression, field reference or usage.
"""

from __future__ import annotations

import argparse
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, TextIO, Tuple

from . import __version__
from .config import get_config
from .errors import InvalidPredicateError, MalformedRecordError, UnknownFieldError
from .io import Record, VCFReader, write_delimited, write_vcf, relabel_columns
from .metrics import counts_table, tally_table, quality_series, quality_summary
from .plot import plot_counts_bar, plot_quality_distribution
from .query import (
	Predicate,
	combine_expressions,
	count_by,
	count_where,
	default_fields,
	filter_records,
	parse_predicate,
	project,
)
from .utils import (
	log_error,
	log_info,
	log_warn,
	parse_delimiter,
	parse_label_mapping,
	set_quiet,
	split_field_list,
)

EXIT_OK = 0
EXIT_MALFORMED = 1
EXIT_USAGE = 2


# -- argument types ----------------------------------------------------------

def _delimiter_arg(text: str) -> str:
	try:
		return parse_delimiter(text)
	except ValueError as exc:
		raise argparse.ArgumentTypeError(str(exc))


def _relabel_arg(text: str) -> Tuple[str, str]:
	try:
		(old, new), = parse_label_mapping([text]).items()
	except ValueError as exc:
		raise argparse.ArgumentTypeError(str(exc))
	return old, new


def _count_arg(text: str) -> int:
	try:
		value = int(text)
	except ValueError:
		raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {text!r}")
	if value < 0:
		raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {text!r}")
	return value


def _tally_arg(text: str) -> Tuple[str, str]:
	label, sep, expr = text.partition("=")
	if not sep or not label.strip() or not expr.strip():
		raise argparse.ArgumentTypeError(f"expected LABEL=EXPRESSION, got {text!r}")
	return label.strip(), expr.strip()


# -- shared helpers ----------------------------------------------------------

def _reader(args: argparse.Namespace) -> VCFReader:
	config = get_config()
	on_error = "skip" if args.skip_malformed else config.ON_ERROR
	max_records = args.max_records if args.max_records is not None else config.MAX_RECORDS
	return VCFReader(
		args.vcf,
		max_records=max_records,
		on_error=on_error,
		progress=config.PROGRESS and not args.quiet,
	)


@contextmanager
def _output(path: Optional[str]) -> Iterator[TextIO]:
	"""Yield stdout, or a file opened for writing that is closed on exit."""
	if not path or path == "-":
		yield sys.stdout
		sys.stdout.flush()
		return
	with open(path, "w", newline="") as fh:
		yield fh


def _report(reader: VCFReader, written: int, what: str) -> None:
	log_info(f"{written:,} {what}; {reader.data_lines:,} data line(s) read")
	if reader.errors:
		log_warn(f"Skipped {len(reader.errors):,} malformed record(s)")


def _predicate(args: argparse.Namespace) -> Predicate:
	return combine_expressions(args.expr or [], mode="any" if getattr(args, "any", False) else "all")


# -- subcommands -------------------------------------------------------------

def cmd_filter(args: argparse.Namespace) -> int:
	predicate = _predicate(args)
	relabel: Dict[str, str] = dict(args.relabel or [])
	fields = split_field_list(args.fields)
	if not fields and (relabel or args.delimiter is not None):
		log_warn("--relabel/--delimiter only apply together with --fields; writing native VCF")

	with _reader(args) as reader:
		header = reader.header
		matches = filter_records(reader, predicate, header)
		if fields:
			rows = project(matches, fields, header)
			columns = None if args.no_header else relabel_columns(fields, relabel)
			delimiter = args.delimiter if args.delimiter is not None else get_config().DELIMITER
			with _output(args.out) as out:
				written = write_delimited(rows, out, delimiter, columns)
		else:
			with _output(args.out) as out:
				written = write_vcf(header, matches, out)
	_report(reader, written, "matching record(s) written")
	return EXIT_OK


def cmd_count(args: argparse.Namespace) -> int:
	predicate = _predicate(args)
	with _reader(args) as reader:
		header = reader.header
		counts = count_by(filter_records(reader, predicate, header), args.by, header)
	table = counts_table(counts, key_name=args.by, sort_by=args.sort)
	with _output(args.out) as out:
		write_delimited(
			table.itertuples(index=False, name=None),
			out,
			"\t",
			[args.by, "Count"] if args.header else None,
		)
	if args.table:
		table.to_csv(args.table, sep="\t", index=False)
		log_info(f"Count table saved to: {args.table}")
	if args.plot:
		plot_counts_bar(table, args.by, output_path=args.plot)
		log_info(f"Count plot saved to: {args.plot}")
	_report(reader, len(table), f"distinct {args.by} value(s)")
	return EXIT_OK


def cmd_tally(args: argparse.Namespace) -> int:
	predicates: Dict[str, Predicate] = {}
	for label, expr in args.label:
		if label in predicates:
			raise InvalidPredicateError(f"duplicate tally label '{label}'")
		predicates[label] = parse_predicate(expr)
	with _reader(args) as reader:
		tallies = count_where(reader, predicates, reader.header)
	table = tally_table(tallies, total=reader.records_emitted)
	with _output(args.out) as out:
		write_delimited(((label, count) for label, count in tallies.items()), out, "\t")
	if args.table:
		table.to_csv(args.table, sep="\t", index=False)
		log_info(f"Tally table saved to: {args.table}")
	_report(reader, reader.records_emitted, "record(s) tallied")
	return EXIT_OK


def cmd_transform(args: argparse.Namespace) -> int:
	predicate = _predicate(args)
	relabel: Dict[str, str] = dict(args.relabel or [])
	delimiter = args.delimiter if args.delimiter is not None else get_config().TRANSFORM_DELIMITER
	with _reader(args) as reader:
		header = reader.header
		fields = split_field_list(args.fields)
		if fields:
			labels: List[str] = list(fields)
		else:
			fields = default_fields(header)
			labels = list(header.columns)
		rows = project(filter_records(reader, predicate, header), fields, header)
		columns = None if args.no_header else relabel_columns(labels, relabel)
		with _output(args.out) as out:
			written = write_delimited(rows, out, delimiter, columns)
	_report(reader, written, "record(s) converted")
	return EXIT_OK


def _stats_tallies(threshold: float) -> Dict[str, Predicate]:
	return {
		"PASS": parse_predicate("FILTER == PASS"),
		"FAILED": parse_predicate("FILTER != PASS"),
		f"QUAL>{threshold:g}": parse_predicate(f"QUAL > {threshold}"),
		f"QUAL<={threshold:g}": parse_predicate(f"QUAL <= {threshold}"),
		"MissingQUAL": parse_predicate("!QUAL"),
		"SNV": parse_predicate("len(REF) == 1 && len(ALT) == 1"),
	}


def cmd_stats(args: argparse.Namespace) -> int:
	outdir = Path(args.out)
	outdir.mkdir(parents=True, exist_ok=True)

	# One pass: chromosome counts and QUAL values are gathered while the
	# tallies consume the stream, so stdin works too
	chrom_counts: Dict[str, int] = {}
	qual_values: List[Optional[float]] = []

	def observed(records: Iterable[Record]) -> Iterator[Record]:
		for rec in records:
			if rec.chromosome not in chrom_counts:
				chrom_counts[rec.chromosome] = 0
			chrom_counts[rec.chromosome] += 1
			qual_values.append(rec.quality)
			yield rec

	with _reader(args) as reader:
		tallies = count_where(observed(reader), _stats_tallies(args.qual_threshold), reader.header)
	total = reader.records_emitted
	qual = quality_series(qual_values)

	chrom_df = counts_table(chrom_counts, key_name="CHROM", sort_by="key")
	tally_df = tally_table(tallies, total=total)
	qual_df = quality_summary(qual)
	chrom_df.to_csv(outdir / "chrom_counts.tsv", sep="\t", index=False)
	tally_df.to_csv(outdir / "tallies.tsv", sep="\t", index=False)
	qual_df.to_csv(outdir / "quality_summary.tsv", sep="\t", index=False)
	if not args.no_plots:
		plot_counts_bar(chrom_df, "CHROM", output_path=str(outdir / "chrom_counts.png"))
		plot_quality_distribution(qual, output_path=str(outdir / "qual_distribution.png"))

	with _output(None) as out:
		write_delimited(tally_df[["Label", "Count"]].itertuples(index=False, name=None), out, "\t", ["Label", "Count"])
	_report(reader, total, "record(s) summarised")
	log_info(f"Summary tables and plots written to {outdir}")
	return EXIT_OK


# -- parser ------------------------------------------------------------------

def _add_common(sp: argparse.ArgumentParser) -> None:
	sp.add_argument("--vcf", required=True, help="Input VCF or VCF.GZ file ('-' for stdin)")
	sp.add_argument("--max-records", type=_count_arg, default=None, help="Stop after this many records (debug)")
	sp.add_argument("--skip-malformed", action="store_true", help="Skip and report malformed records instead of aborting")
	sp.add_argument("--quiet", action="store_true", help="Suppress informational messages on stderr")


def _add_expr(sp: argparse.ArgumentParser) -> None:
	sp.add_argument("-e", "--expr", action="append", default=[], metavar="EXPR",
		help="Filter expression, e.g. 'QUAL > 50' or 'len(REF) == 1 && len(ALT) == 1'. Repeat to combine")
	sp.add_argument("--any", action="store_true", help="Keep records matching any expression (default: all)")


def build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="vcf-query", description="Stream, filter and count VCF records")
	p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
	sub = p.add_subparsers(dest="command")

	sp = sub.add_parser("filter", help="Emit records matching the expressions")
	_add_common(sp)
	_add_expr(sp)
	sp.add_argument("--fields", action="append", default=[], help="Project these fields (comma separated) instead of native VCF")
	sp.add_argument("--relabel", action="append", type=_relabel_arg, default=[], metavar="OLD=NEW", help="Rename an output column")
	sp.add_argument("--delimiter", type=_delimiter_arg, default=None, help="Delimiter for projected output (default: tab)")
	sp.add_argument("--no-header", action="store_true", help="Omit the column header row of projected output")
	sp.add_argument("--out", default=None, help="Output file (default: stdout)")
	sp.set_defaults(func=cmd_filter)

	sp2 = sub.add_parser("count", help="Count records per field value")
	_add_common(sp2)
	_add_expr(sp2)
	sp2.add_argument("--by", required=True, help="Grouping field, e.g. CHROM, FILTER, INFO/TYPE")
	sp2.add_argument("--sort", choices=["key", "count"], default="key", help="Order of the output rows")
	sp2.add_argument("--header", action="store_true", help="Print a column header row")
	sp2.add_argument("--table", default=None, help="Also save the counts as TSV")
	sp2.add_argument("--plot", default=None, help="Also save a bar chart (PNG)")
	sp2.add_argument("--out", default=None, help="Output file (default: stdout)")
	sp2.set_defaults(func=cmd_count)

	sp3 = sub.add_parser("tally", help="Count records matching each labelled expression independently")
	_add_common(sp3)
	sp3.add_argument("--label", action="append", type=_tally_arg, required=True, metavar="LABEL=EXPR",
		help="Labelled expression, e.g. 'high=QUAL > 50'. Repeatable")
	sp3.add_argument("--table", default=None, help="Also save the tallies (with fractions) as TSV")
	sp3.add_argument("--out", default=None, help="Output file (default: stdout)")
	sp3.set_defaults(func=cmd_tally)

	sp4 = sub.add_parser("transform", help="Rewrite records with another delimiter and/or labels")
	_add_common(sp4)
	_add_expr(sp4)
	sp4.add_argument("--delimiter", type=_delimiter_arg, default=None, help="Output delimiter (default: comma)")
	sp4.add_argument("--relabel", action="append", type=_relabel_arg, default=[], metavar="OLD=NEW", help="Rename an output column")
	sp4.add_argument("--fields", action="append", default=[], help="Output only these fields (comma separated)")
	sp4.add_argument("--no-header", action="store_true", help="Omit the column header row")
	sp4.add_argument("--out", default=None, help="Output file (default: stdout)")
	sp4.set_defaults(func=cmd_transform)

	sp5 = sub.add_parser("stats", help="Summary tables and plots")
	_add_common(sp5)
	sp5.add_argument("--out", required=True, help="Output directory for tables and plots")
	sp5.add_argument("--qual-threshold", type=float, default=50.0, help="QUAL threshold separating high/low quality tallies")
	sp5.add_argument("--no-plots", action="store_true", help="Only write the TSV tables")
	sp5.set_defaults(func=cmd_stats)
	return p


def main(argv=None) -> int:
	parser = build_parser()
	args = parser.parse_args(argv)
	if not hasattr(args, "func"):
		parser.print_help()
		return EXIT_USAGE
	try:
		config = get_config()
	except ValueError as exc:
		log_error(f"Invalid configuration: {exc}")
		return EXIT_USAGE
	set_quiet(args.quiet or config.QUIET)
	try:
		return args.func(args)
	except (UnknownFieldError, InvalidPredicateError) as exc:
		log_error(str(exc))
		return EXIT_USAGE
	except MalformedRecordError as exc:
		log_error(f"Malformed input: {exc}")
		return EXIT_MALFORMED
	except OSError as exc:
		log_error(f"Cannot read/write file: {exc}")
		return EXIT_MALFORMED


if __name__ == "__main__":  # pragma: no cover
	sys.exit(main())
