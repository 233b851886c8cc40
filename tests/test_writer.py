import io

import pytest

from vcf_query.errors import UnknownFieldError
from vcf_query.io import format_row, relabel_columns, write_delimited, write_vcf
from vcf_query.query import filter_records, parse_predicate, project


def test_header_row_written_once(records, header):
	buf = io.StringIO()
	n = write_delimited(project(records, ["CHROM", "POS"], header), buf, "\t", ["CHROM", "POS"])
	lines = buf.getvalue().splitlines()
	assert n == 5
	assert lines[0] == "CHROM\tPOS"
	assert lines[1:] == ["chr1\t1000", "chr1\t2000", "chr2\t3000", "chr2\t4000", "chrX\t5000"]
	assert lines.count("CHROM\tPOS") == 1


def test_empty_stream_still_gets_header():
	buf = io.StringIO()
	assert write_delimited(iter([]), buf, ",", ["Chromosome", "Position"]) == 0
	assert buf.getvalue() == "Chromosome,Position\n"


def test_no_header_and_none_values():
	buf = io.StringIO()
	write_delimited([("chr1", None, 3.5)], buf, ",")
	assert buf.getvalue() == "chr1,.,3.5\n"
	assert format_row(["a", "b"], "|") == "a|b"


def test_comma_output_quotes_values_containing_the_delimiter():
	buf = io.StringIO()
	write_delimited([("chr1", "0/1:10,5", 'say "hi"')], buf, ",", ["CHROM", "S1", "NOTE"])
	assert buf.getvalue() == 'CHROM,S1,NOTE\nchr1,"0/1:10,5","say ""hi"""\n'


def test_tab_output_is_verbatim():
	buf = io.StringIO()
	write_delimited([("chr1", "0/1:10,5", 'a"b')], buf, "\t")
	assert buf.getvalue() == 'chr1\t0/1:10,5\ta"b\n'


def test_write_vcf_reproduces_input(records, header, vcf_text):
	buf = io.StringIO()
	assert write_vcf(header, records, buf) == 5
	assert buf.getvalue() == vcf_text


def test_write_vcf_with_no_matches_keeps_header(records, header, vcf_text):
	buf = io.StringIO()
	matches = filter_records(records, parse_predicate("QUAL > 1000"), header)
	assert write_vcf(header, matches, buf) == 0
	assert buf.getvalue().splitlines() == header.to_lines()


def test_relabel_columns():
	assert relabel_columns(["CHROM", "POS", "QUAL"], {"CHROM": "Chromosome", "QUAL": "Quality"}) == [
		"Chromosome",
		"POS",
		"Quality",
	]
	with pytest.raises(UnknownFieldError):
		relabel_columns(["CHROM", "POS"], {"ALT": "Alternative"})
