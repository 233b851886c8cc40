"""Run the tutorial queries against a VCF and print the results.

Usage:
    PYTHONPATH=.. python3 examples/tutorial_queries.py --vcf examples/tutorial.vcf
"""
from __future__ import annotations

import argparse
import sys

from vcf_query.io import VCFReader, write_delimited
from vcf_query.query import (
    all_of,
    count_by,
    equals,
    filter_records,
    greater_than,
    length_equals,
    project,
)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--vcf", required=True, help="Input VCF(.gz)")
    args = ap.parse_args()

    with VCFReader(args.vcf) as reader:
        header = reader.header
        print("# QUAL > 50")
        high = filter_records(reader, greater_than("QUAL", 50), header)
        write_delimited(project(high, ["CHROM", "POS", "QUAL"], header), sys.stdout, "\t", ["CHROM", "POS", "QUAL"])

    with VCFReader(args.vcf) as reader:
        passed = list(filter_records(reader, equals("FILTER", "PASS"), reader.header))
    print(f"# FILTER == PASS: {len(passed)} record(s)")

    with VCFReader(args.vcf) as reader:
        print("# records per chromosome")
        for chrom, n in count_by(reader, "CHROM", reader.header).items():
            print(f"{chrom}\t{n}")

    with VCFReader(args.vcf) as reader:
        pred = all_of(equals("CHROM", "chr1"), greater_than("QUAL", 80))
        print(f"# chr1 and QUAL > 80: {sum(1 for _ in filter_records(reader, pred, reader.header))} record(s)")

    with VCFReader(args.vcf) as reader:
        snv = all_of(length_equals("REF", 1), length_equals("ALT", 1))
        print(f"# SNVs: {sum(1 for _ in filter_records(reader, snv, reader.header))} record(s)")


if __name__ == "__main__":
    main()
