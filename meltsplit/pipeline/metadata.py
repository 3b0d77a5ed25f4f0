"""Per-sample runtime metadata: expected coverage and insert size.

The input is a whitespace delimited table with one row per sample:

    sample coverage [insert_size]

When a sample appears more than once, the last row wins. Samples are only
checked when a stage asks for them, so a missing sample fails the run at the
point it is first needed.
"""
import collections
from collections.abc import Mapping

from meltsplit.log import logger
from meltsplit.pipeline.config_utils import ConfigurationError


class MetadataLookupError(KeyError):
    pass

MissingMetadata = MetadataLookupError

SampleMetadata = collections.namedtuple("SampleMetadata", "coverage insert_size")

class MetadataStore(Mapping):
    """Read only mapping of sample identifiers to SampleMetadata.
    """
    def __init__(self, records, source=None):
        self._records = dict(records)
        self.source = source

    def __getitem__(self, sample):
        return self._records[sample]

    def __iter__(self):
        return iter(self._records)

    def __len__(self):
        return len(self._records)

    def lookup(self, sample):
        name = getattr(sample, "name", sample)
        try:
            return self._records[name]
        except KeyError:
            raise MetadataLookupError("Sample %s not found in metadata file %s"
                                      % (name, self.source or "(in memory)"))

    def coverage(self, sample):
        return self.lookup(sample).coverage

    def insert_size(self, sample):
        return self.lookup(sample).insert_size

def _parse_number(val, convert, fname, line_no):
    try:
        return convert(val)
    except ValueError:
        raise ConfigurationError("Unexpected value %s in metadata file %s, line %s"
                                 % (val, fname, line_no))

def load(fname):
    """Load a metadata table into a MetadataStore.
    """
    records = collections.OrderedDict()
    with open(fname) as in_handle:
        for line_no, line in enumerate(in_handle, 1):
            parts = line.split()
            if not parts or parts[0].startswith("#"):
                continue
            if len(parts) < 2:
                raise ConfigurationError("Expected sample and coverage in metadata file %s, "
                                         "line %s: %s" % (fname, line_no, line.strip()))
            coverage = _parse_number(parts[1], float, fname, line_no)
            insert_size = _parse_number(parts[2], int, fname, line_no) if len(parts) > 2 else None
            if parts[0] in records:
                logger.debug("Replacing metadata for %s with line %s of %s"
                             % (parts[0], line_no, fname))
            records[parts[0]] = SampleMetadata(coverage, insert_size)
    logger.info("Loaded metadata for %s samples from %s" % (len(records), fname))
    return MetadataStore(records, fname)
