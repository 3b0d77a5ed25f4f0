"""Descriptions of scheduler jobs and the dependencies between them.

Job names are built from the stage, family and sample so they are unique
within a run and identical when the same inputs are planned again:

  - Preprocess: {sample}.PRE
  - IndivAnalysis: {family}.{sample}.IND
  - GroupAnalysis: {family}.GROUP
  - Genotype: {family}.{sample}.GENO
  - MakeVCF: {family}.VCF
"""
import collections
import os

from meltsplit import utils
from meltsplit.pipeline.config_utils import ConfigurationError

PREPROCESS = "Preprocess"
INDIV = "IndivAnalysis"
GROUP = "GroupAnalysis"
GENOTYPE = "Genotype"
MAKEVCF = "MakeVCF"

STAGES = [PREPROCESS, INDIV, GROUP, GENOTYPE, MAKEVCF]

SUFFIXES = {PREPROCESS: "PRE", INDIV: "IND", GROUP: "GROUP", GENOTYPE: "GENO", MAKEVCF: "VCF"}

# stages planned once per sample and once per family
_SAMPLE_SCOPED = set([PREPROCESS, INDIV, GENOTYPE])
_FAMILY_SCOPED = set([INDIV, GROUP, GENOTYPE, MAKEVCF])

Sample = collections.namedtuple("Sample", "name bam_file")

JobDescriptor = collections.namedtuple("JobDescriptor",
                                       ["name", "stage", "cores", "memory", "command",
                                        "depends", "stdout", "stderr"])

def samples_from_files(bam_files):
    """Create samples from alignment files, named by the file stem.
    """
    if not bam_files:
        raise ConfigurationError("Need at least one input alignment file")
    samples = []
    seen = {}
    for bam_file in bam_files:
        name = utils.file_stem(bam_file)
        if name in seen:
            raise ConfigurationError("Alignment files %s and %s resolve to the same sample name %s"
                                     % (seen[name], bam_file, name))
        seen[name] = bam_file
        samples.append(Sample(name, os.path.abspath(bam_file)))
    return samples

def job_name(stage, family=None, sample=None):
    """Unique, deterministic name for a job within a run.
    """
    if stage not in STAGES:
        raise ValueError("Unexpected pipeline stage: %s" % stage)
    if stage in _FAMILY_SCOPED and family is None:
        raise ValueError("%s jobs need a reference family" % stage)
    if stage in _SAMPLE_SCOPED and sample is None:
        raise ValueError("%s jobs need a sample" % stage)
    parts = []
    if stage in _FAMILY_SCOPED:
        parts.append(getattr(family, "name", family))
    if stage in _SAMPLE_SCOPED:
        parts.append(getattr(sample, "name", sample))
    parts.append(SUFFIXES[stage])
    return ".".join(parts)

def log_files(log_dir, stage, name):
    """Standard out and standard error logs for a job.
    """
    base = os.path.join(log_dir, "%s.%s" % (stage, name))
    return base + ".out", base + ".err"

class Dependency(object):
    """Conjunction of prior jobs which all need to succeed before a job runs.

    An empty conjunction has no requirements and the job is eligible
    immediately. The scheduler syntax is only produced by render.
    """
    def __init__(self, names=None):
        self.names = tuple(utils.unique(names or []))

    @classmethod
    def all_of(cls, names):
        return cls(getattr(x, "name", x) for x in names)

    @classmethod
    def none(cls):
        return cls()

    def and_(self, other):
        other_names = other.names if isinstance(other, Dependency) else [getattr(other, "name", other)]
        return Dependency(list(self.names) + list(other_names))

    def render(self):
        return " && ".join("done(%s)" % x for x in self.names)

    def __bool__(self):
        return len(self.names) > 0

    def __iter__(self):
        return iter(self.names)

    def __len__(self):
        return len(self.names)

    def __eq__(self, other):
        return isinstance(other, Dependency) and self.names == other.names

    def __hash__(self):
        return hash(self.names)

    def __repr__(self):
        return "Dependency(%s)" % self.render()
