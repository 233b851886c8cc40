import pytest

from vcf_query.config import Config, get_config
from vcf_query.utils import (
	log_error,
	log_info,
	natural_sort_key,
	parse_delimiter,
	parse_label_mapping,
	progress_interval,
	set_quiet,
	split_field_list,
)


def test_config_defaults(monkeypatch):
	for name in ("VCFQ_ON_ERROR", "VCFQ_QUIET", "VCFQ_DELIMITER", "VCFQ_MAX_RECORDS"):
		monkeypatch.delenv(name, raising=False)
	config = get_config()
	assert config.ON_ERROR == "abort"
	assert config.QUIET is False
	assert config.DELIMITER == "\t"
	assert config.TRANSFORM_DELIMITER == ","
	assert config.MAX_RECORDS is None


def test_config_environment_and_dict_overrides(monkeypatch):
	monkeypatch.setenv("VCFQ_ON_ERROR", "skip")
	monkeypatch.setenv("VCFQ_QUIET", "yes")
	monkeypatch.setenv("VCFQ_MAX_RECORDS", "10")
	config = Config({"delimiter": "|"})
	assert config.to_dict()["ON_ERROR"] == "skip"
	assert config.QUIET is True
	assert config.MAX_RECORDS == 10
	assert config.DELIMITER == "|"
	with pytest.raises(KeyError):
		Config({"colour": "blue"})


def test_config_rejects_unknown_error_mode(monkeypatch):
	monkeypatch.setenv("VCFQ_ON_ERROR", "ignore")
	with pytest.raises(ValueError):
		get_config()


@pytest.mark.parametrize("value", ["ten", "-3"])
def test_config_rejects_bad_record_limit(monkeypatch, value):
	monkeypatch.delenv("VCFQ_ON_ERROR", raising=False)
	monkeypatch.setenv("VCFQ_MAX_RECORDS", value)
	with pytest.raises(ValueError, match="VCFQ_MAX_RECORDS"):
		get_config()


def test_skip_mode_from_environment(monkeypatch, capsys, tmp_path, make_vcf, data_lines):
	from vcf_query.cli import main

	monkeypatch.setenv("VCFQ_ON_ERROR", "skip")
	path = tmp_path / "bad.vcf"
	path.write_text(make_vcf(data_lines[0], "short\tline"))
	assert main(["count", "--vcf", str(path), "--by", "CHROM"]) == 0
	assert capsys.readouterr().out == "chr1\t1\n"


@pytest.mark.parametrize(
	"text, expected",
	[("tab", "\t"), ("\\t", "\t"), ("comma", ","), ("pipe", "|"), (";", ";"), ("\t", "\t")],
)
def test_parse_delimiter(text, expected):
	assert parse_delimiter(text) == expected


def test_parse_delimiter_rejects_words():
	with pytest.raises(ValueError):
		parse_delimiter("colon-ish")
	with pytest.raises(ValueError):
		parse_delimiter('"')


def test_parse_label_mapping():
	assert parse_label_mapping(["CHROM=Chromosome", " POS = Position "]) == {"CHROM": "Chromosome", "POS": "Position"}
	assert parse_label_mapping(None) == {}
	for bad in ("CHROM", "=x", "x="):
		with pytest.raises(ValueError):
			parse_label_mapping([bad])


def test_split_field_list():
	assert split_field_list(["CHROM,POS", "QUAL", " ,INFO/DP"]) == ["CHROM", "POS", "QUAL", "INFO/DP"]
	assert split_field_list(None) == []


def test_natural_sort_key():
	assert sorted(["chr10", "chr2", "chrX", "chr1"], key=natural_sort_key) == ["chr1", "chr2", "chr10", "chrX"]


def test_progress_interval_grows():
	assert progress_interval(5000) == 1000
	assert progress_interval(50000) == 10000
	assert progress_interval(500000) == 50000


def test_quiet_keeps_errors(capsys):
	set_quiet(True)
	try:
		log_info("hidden")
		log_error("shown")
	finally:
		set_quiet(False)
	err = capsys.readouterr().err
	assert "hidden" not in err
	assert "[ERROR] shown" in err
