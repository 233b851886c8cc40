import gzip

import pytest

from vcf_query.io import VCFReader

VCF_TEXT = (
	"##fileformat=VCFv4.2\n"
	"##source=tutorial\n"
	'##INFO=<ID=DP,Number=1,Type=Integer,Description="Total Depth">\n'
	'##INFO=<ID=DB,Number=0,Type=Flag,Description="dbSNP membership, build 151">\n'
	'##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">\n'
	'##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Read Depth">\n'
	"#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSample1\tSample2\n"
	"chr1\t1000\trs001\tA\tG\t99.9\tPASS\tDP=50;DB\tGT:DP\t0/1:25\t1/1:25\n"
	"chr1\t2000\t.\tC\tT\t85.3\tPASS\tDP=45\tGT:DP\t0/1:20\t0/0:25\n"
	"chr2\t3000\trs003\tG\tA\t45.2\tPASS\tDP=30\tGT:DP\t0/0:15\t0/1:15\n"
	"chr2\t4000\t.\tT\tC\t12.1\tLOWQUAL\tDP=10\tGT:DP\t0/1:5\t./.:5\n"
	"chrX\t5000\trs005\tA\tT\t78.9\tPASS\tDP=40;DB\tGT:DP\t1/1:20\t0/1:20\n"
)

DATA_LINES = [line for line in VCF_TEXT.splitlines() if not line.startswith("#")]


@pytest.fixture
def vcf_text():
	return VCF_TEXT


@pytest.fixture
def vcf_path(tmp_path):
	path = tmp_path / "tutorial.vcf"
	path.write_text(VCF_TEXT)
	return path


@pytest.fixture
def vcf_gz_path(tmp_path):
	path = tmp_path / "tutorial.vcf.gz"
	with gzip.open(path, "wt") as fh:
		fh.write(VCF_TEXT)
	return path


@pytest.fixture
def reader():
	with VCFReader(VCF_TEXT.splitlines(True)) as r:
		yield r


@pytest.fixture
def header(reader):
	return reader.header


@pytest.fixture
def records(reader):
	return list(reader)


@pytest.fixture
def data_lines():
	return list(DATA_LINES)


def _make_vcf(*data_lines, columns="#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSample1\tSample2"):
	"""Build VCF text with a minimal header and the given data lines."""
	return "##fileformat=VCFv4.2\n" + columns + "\n" + "".join(line + "\n" for line in data_lines)


@pytest.fixture
def make_vcf():
	return _make_vcf
