import csv
import io
import sys

import pytest

from vcf_query.cli import EXIT_MALFORMED, EXIT_OK, EXIT_USAGE, build_parser, main


def run(capsys, *argv):
	code = main(list(argv))
	out, err = capsys.readouterr()
	return code, out, err


def data(out):
	return [line for line in out.splitlines() if not line.startswith("#")]


def test_filter_native_output(capsys, vcf_path, header):
	code, out, _ = run(capsys, "filter", "--vcf", str(vcf_path), "-e", "QUAL > 50")
	assert code == EXIT_OK
	lines = out.splitlines()
	assert lines[: len(header.to_lines())] == header.to_lines()
	assert [line.split("\t")[1] for line in data(out)] == ["1000", "2000", "5000"]


def test_filter_multiple_expressions(capsys, vcf_path):
	code, out, _ = run(capsys, "filter", "--vcf", str(vcf_path), "-e", "CHROM == chr1", "-e", "QUAL > 80")
	assert code == EXIT_OK
	assert len(data(out)) == 2
	code, out, _ = run(capsys, "filter", "--vcf", str(vcf_path), "--any", "-e", "CHROM == chrX", "-e", "FILTER != PASS")
	assert [line.split("\t")[1] for line in data(out)] == ["4000", "5000"]


def test_filter_projection_with_relabel(capsys, vcf_gz_path):
	code, out, _ = run(
		capsys,
		"filter", "--vcf", str(vcf_gz_path),
		"-e", "FILTER == PASS",
		"--fields", "CHROM,POS", "--fields", "QUAL",
		"--relabel", "CHROM=Chromosome",
		"--delimiter", "comma",
	)
	assert code == EXIT_OK
	assert out.splitlines() == [
		"Chromosome,POS,QUAL",
		"chr1,1000,99.9",
		"chr1,2000,85.3",
		"chr2,3000,45.2",
		"chrX,5000,78.9",
	]


def test_filter_no_matches_is_success(capsys, vcf_path):
	code, out, _ = run(capsys, "filter", "--vcf", str(vcf_path), "-e", "CHROM == chrY", "--fields", "CHROM,POS")
	assert code == EXIT_OK
	assert out == "CHROM\tPOS\n"


def test_filter_writes_file(capsys, vcf_path, tmp_path):
	target = tmp_path / "pass.vcf"
	code, out, _ = run(capsys, "filter", "--vcf", str(vcf_path), "-e", "FILTER == PASS", "--out", str(target))
	assert code == EXIT_OK
	assert out == ""
	assert len(data(target.read_text())) == 4


def test_count(capsys, vcf_path, tmp_path):
	table = tmp_path / "counts.tsv"
	plot = tmp_path / "counts.png"
	code, out, _ = run(capsys, "count", "--vcf", str(vcf_path), "--by", "CHROM", "--table", str(table), "--plot", str(plot))
	assert code == EXIT_OK
	assert out == "chr1\t2\nchr2\t2\nchrX\t1\n"
	assert table.read_text().splitlines()[0] == "CHROM\tCount"
	assert plot.exists()


def test_count_with_filter_and_header(capsys, vcf_path):
	code, out, _ = run(capsys, "count", "--vcf", str(vcf_path), "--by", "FILTER", "-e", "QUAL > 10", "--header", "--sort", "count")
	assert code == EXIT_OK
	assert out.splitlines() == ["FILTER\tCount", "PASS\t4", "LOWQUAL\t1"]


def test_tally(capsys, vcf_path):
	code, out, _ = run(
		capsys,
		"tally", "--vcf", str(vcf_path),
		"--label", "high=QUAL > 50",
		"--label", "low=QUAL <= 50",
		"--label", "passed=FILTER == PASS",
	)
	assert code == EXIT_OK
	assert out.splitlines() == ["high\t3", "low\t2", "passed\t4"]


def test_transform_to_csv(capsys, vcf_path):
	code, out, _ = run(capsys, "transform", "--vcf", str(vcf_path), "--relabel", "CHROM=Chromosome", "--relabel", "Sample1=S1")
	assert code == EXIT_OK
	lines = out.splitlines()
	assert lines[0] == "Chromosome,POS,ID,REF,ALT,QUAL,FILTER,INFO,FORMAT,S1,Sample2"
	assert lines[1] == "chr1,1000,rs001,A,G,99.9,PASS,DP=50;DB,GT:DP,0/1:25,1/1:25"
	assert len(lines) == 6


def test_transform_tab_to_tab_round_trips_data(capsys, vcf_path, data_lines):
	code, out, _ = run(capsys, "transform", "--vcf", str(vcf_path), "--delimiter", "tab", "--no-header")
	assert code == EXIT_OK
	assert out.splitlines() == data_lines


def test_invalid_expression_exits_2_without_output(capsys, vcf_path):
	code, out, err = run(capsys, "filter", "--vcf", str(vcf_path), "-e", "QUAL >")
	assert code == EXIT_USAGE
	assert out == ""
	assert "[ERROR]" in err


def test_unknown_field_exits_2_without_output(capsys, vcf_path):
	code, out, err = run(capsys, "filter", "--vcf", str(vcf_path), "--fields", "CHROM,SAMPLE[9]/GT")
	assert code == EXIT_USAGE
	assert out == ""
	assert "SAMPLE[9]" in err


def test_malformed_input_exits_1(capsys, tmp_path, make_vcf, data_lines):
	path = tmp_path / "bad.vcf"
	path.write_text(make_vcf(data_lines[0], "chr1\t2000\t.\tC"))
	code, _, err = run(capsys, "count", "--vcf", str(path), "--by", "CHROM")
	assert code == EXIT_MALFORMED
	assert "line 4" in err


def test_skip_malformed(capsys, tmp_path, make_vcf, data_lines):
	path = tmp_path / "bad.vcf"
	path.write_text(make_vcf(data_lines[0], "chr1\t2000\t.\tC", data_lines[1]))
	code, out, err = run(capsys, "count", "--vcf", str(path), "--by", "CHROM", "--skip-malformed")
	assert code == EXIT_OK
	assert out == "chr1\t2\n"
	assert "Skipped 1 malformed record(s)" in err


def test_quiet_suppresses_info(capsys, vcf_path):
	code, _, err = run(capsys, "count", "--vcf", str(vcf_path), "--by", "CHROM", "--quiet")
	assert code == EXIT_OK
	assert err == ""


def test_missing_file_exits_nonzero(capsys, tmp_path):
	code, _, err = run(capsys, "count", "--vcf", str(tmp_path / "nope.vcf"), "--by", "CHROM")
	assert code == EXIT_MALFORMED
	assert "[ERROR]" in err


def test_transform_quotes_sample_values_containing_commas(capsys, tmp_path, make_vcf):
	path = tmp_path / "ad.vcf"
	path.write_text(make_vcf(
		"chr1\t10\t.\tA\tG\t50\tPASS\tDP=3\tGT:AD\t0/1:10,5",
		columns="#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tS1",
	))
	code, out, _ = run(capsys, "transform", "--vcf", str(path))
	assert code == EXIT_OK
	header_row, data_row = list(csv.reader(io.StringIO(out)))
	assert len(header_row) == len(data_row) == 10
	assert data_row[-1] == "0/1:10,5"
	assert out.splitlines()[1].endswith(',"0/1:10,5"')


def test_max_records_zero_outputs_nothing(capsys, vcf_path):
	code, out, _ = run(capsys, "count", "--vcf", str(vcf_path), "--by", "CHROM", "--max-records", "0")
	assert code == EXIT_OK
	assert out == ""


def test_negative_max_records_rejected():
	with pytest.raises(SystemExit):
		build_parser().parse_args(["count", "--vcf", "x.vcf", "--by", "CHROM", "--max-records", "-1"])


@pytest.mark.parametrize("name, value", [("VCFQ_MAX_RECORDS", "ten"), ("VCFQ_ON_ERROR", "ignore")])
def test_bad_environment_setting_exits_2(capsys, monkeypatch, vcf_path, name, value):
	monkeypatch.setenv(name, value)
	code, out, err = run(capsys, "count", "--vcf", str(vcf_path), "--by", "CHROM")
	assert code == EXIT_USAGE
	assert out == ""
	assert "[ERROR] Invalid configuration" in err


def test_stats_reads_stdin(capsys, monkeypatch, vcf_text, tmp_path):
	monkeypatch.setattr(sys, "stdin", io.StringIO(vcf_text))
	outdir = tmp_path / "stats"
	code, out, _ = run(capsys, "stats", "--vcf", "-", "--out", str(outdir), "--no-plots")
	assert code == EXIT_OK
	assert out.splitlines()[1] == "PASS\t4"
	chrom = (outdir / "chrom_counts.tsv").read_text().splitlines()
	assert chrom == ["CHROM\tCount", "chr1\t2", "chr2\t2", "chrX\t1"]
	summary = (outdir / "quality_summary.tsv").read_text().splitlines()
	assert summary[0].split("\t")[:3] == ["Records", "WithQual", "MissingQual"]
	assert summary[1].split("\t")[:3] == ["5", "5", "0"]
	assert not (outdir / "chrom_counts.png").exists()


def test_stats(capsys, vcf_path, tmp_path):
	outdir = tmp_path / "stats"
	code, out, _ = run(capsys, "stats", "--vcf", str(vcf_path), "--out", str(outdir))
	assert code == EXIT_OK
	for name in ("chrom_counts.tsv", "tallies.tsv", "quality_summary.tsv", "chrom_counts.png", "qual_distribution.png"):
		assert (outdir / name).exists(), name
	assert out.splitlines() == [
		"Label\tCount",
		"PASS\t4",
		"FAILED\t1",
		"QUAL>50\t3",
		"QUAL<=50\t2",
		"MissingQUAL\t0",
		"SNV\t5",
	]


def test_bad_arguments_are_rejected_by_argparse():
	parser = build_parser()
	with pytest.raises(SystemExit):
		parser.parse_args(["transform", "--vcf", "x.vcf", "--delimiter", "::"])
	with pytest.raises(SystemExit):
		parser.parse_args(["tally", "--vcf", "x.vcf", "--label", "no-expression"])


def test_no_subcommand_prints_help(capsys):
	assert main([]) == EXIT_USAGE
