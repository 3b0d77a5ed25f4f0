"""Functionality to probe alignment files for runtime parameters.

Provides read length estimates from the start of an alignment file and insert
sizes from per-sample histograms. AlignmentProbe bundles these for stage
planning, so tests can swap it for a mock instead of reading real files.
"""
import os
import re

import numpy
import pysam
import toolz as tz

from meltsplit.log import logger

HISTOGRAM_EXT = ".insert_size.hist"

_integer_pat = re.compile(r"^[0-9]+$")

class ProbeError(Exception):
    pass

def open_samfile(in_file, ref_file=None):
    if in_file.endswith(".cram"):
        return pysam.AlignmentFile(in_file, "rc", reference_filename=ref_file)
    elif in_file.endswith(".sam"):
        return pysam.AlignmentFile(in_file, "r", check_sq=False)
    return pysam.AlignmentFile(in_file, "rb", check_sq=False)

def estimate_read_length(bam_file, ref_file=None, nreads=1000):
    """Most frequent read length among the first aligned reads of a SAM/BAM/CRAM file.

    Ties go to the smallest length.
    """
    with open_samfile(bam_file, ref_file) as bam_handle:
        reads = tz.itertoolz.take(nreads, (x for x in bam_handle
                                           if not x.is_unmapped and x.query_sequence))
        lengths = [len(x.query_sequence) for x in reads]
    if not lengths:
        raise ProbeError("No aligned reads with sequences found to estimate read length in %s"
                         % bam_file)
    return most_common_length(lengths)

def most_common_length(lengths):
    # numpy.unique returns sorted values, so argmax picks the smallest of tied counts
    values, counts = numpy.unique(lengths, return_counts=True)
    return int(values[numpy.argmax(counts)])

def _is_integer_size(val):
    # excludes floating point and scientific notation outlier rows like 1e3 or 1.2e+05
    return _integer_pat.match(val) is not None

def insert_size_from_histogram(hist_file):
    """Retrieve the insert size with the highest frequency from a histogram file.

    Rows are `size frequency`. Rows with a non-integer size are dropped, the
    rest sorted by frequency and the size of the most frequent row used.
    """
    if not os.path.exists(hist_file):
        raise ProbeError("Insert size histogram not found: %s" % hist_file)
    rows = []
    with open(hist_file, encoding="utf-8") as in_handle:
        for line in in_handle:
            parts = line.split()
            if len(parts) < 2 or parts[0].startswith("#"):
                continue
            if not _is_integer_size(parts[0]):
                logger.debug("Skipping insert size histogram row in %s: %s"
                             % (hist_file, line.strip()))
                continue
            try:
                freq = float(parts[1])
            except ValueError:
                continue
            rows.append((int(parts[0]), freq))
    if not rows:
        raise ProbeError("No usable insert size rows found in %s" % hist_file)
    rows = sorted(rows, key=lambda x: x[1])
    return rows[-1][0]

def template_length(insert_size, read_length):
    """Expected template length of a read pair: insert plus both reads.
    """
    return int(insert_size) + 2 * int(read_length)

class AlignmentProbe(object):
    """Retrieve read length and insert size values for samples.

    Read lengths are cached per alignment file, so a sample is only read once
    no matter how many reference families need the value.
    """
    def __init__(self, ref_file=None, histogram_dir=None, nreads=1000):
        self.ref_file = ref_file
        self.histogram_dir = histogram_dir
        self.nreads = nreads
        self._read_length = tz.memoize(self._estimate_read_length)

    def _estimate_read_length(self, bam_file):
        logger.info("Estimating read length from %s" % bam_file)
        return estimate_read_length(bam_file, self.ref_file, self.nreads)

    def read_length(self, sample):
        return self._read_length(sample.bam_file)

    def histogram_file(self, sample):
        base_dir = self.histogram_dir or os.path.dirname(sample.bam_file)
        return os.path.join(base_dir, "%s%s" % (sample.name, HISTOGRAM_EXT))

    def insert_size(self, sample):
        return insert_size_from_histogram(self.histogram_file(sample))
