"""Plan the jobs for each stage of the discovery pipeline.

Each stage builds the complete list of its jobs before anything is submitted,
with dependencies pointing only at jobs from earlier stages:

  - Preprocess (optional): per sample, no dependencies.
  - IndivAnalysis: per family and sample, after the sample's Preprocess job.
  - GroupAnalysis: per family, after every IndivAnalysis job of the family.
  - Genotype: per family and sample, after the family's GroupAnalysis job.
  - MakeVCF: per family, after every Genotype job of the family.
"""
import shlex

from meltsplit.bam import template_length
from meltsplit.log import logger
from meltsplit.pipeline import config_utils
from meltsplit.pipeline.jobs import (PREPROCESS, INDIV, GROUP, GENOTYPE, MAKEVCF,
                                     Dependency, JobDescriptor, job_name, log_files)

def _java_cmd(config, stage):
    memory = config_utils.get_memory(stage, config)
    return ("{java} -Xmx{mem.amount}{mem.unit} -Dsamjdk.max_records_in_ram={records} "
            "-jar {tool} {stage}").format(java=shlex.quote(config.java), mem=memory,
                                          records=config.max_records,
                                          tool=shlex.quote(config.tool), stage=stage)

def _job(config, stage, name, cmd, depends=None):
    stdout, stderr = log_files(config.log_dir, stage, name)
    return JobDescriptor(name=name, stage=stage,
                         cores=config_utils.get_cores(stage, config),
                         memory=config_utils.get_memory(stage, config),
                         command=cmd, depends=depends or Dependency.none(),
                         stdout=stdout, stderr=stderr)

def _depends_on(prior_jobs, names):
    """Build a dependency on previously planned jobs, refusing unknown names.
    """
    known = set(j.name for j in prior_jobs)
    missing = [x for x in names if x not in known]
    if missing:
        raise ValueError("Dependencies reference jobs which were not planned: %s"
                         % ", ".join(missing))
    return Dependency.all_of(names)

def _fmt_coverage(coverage):
    return "{0:g}".format(coverage)

def plan_preprocess(config, samples):
    """Prepare discordant read pairs and split reads for each sample.
    """
    jobs = []
    for sample in samples:
        cmd = "{java} -bamfile {bam} -h {ref}".format(java=_java_cmd(config, PREPROCESS),
                                                      bam=shlex.quote(sample.bam_file),
                                                      ref=shlex.quote(config.ref_file))
        jobs.append(_job(config, PREPROCESS, job_name(PREPROCESS, sample=sample), cmd))
    return jobs

def plan_indiv(config, samples, families, metadata, probe, preprocess_jobs=None):
    """Per sample discovery of element insertions for every reference family.
    """
    jobs = []
    for family in families:
        work_dir = config_utils.discovery_dir(config, family)
        for sample in samples:
            coverage = metadata.coverage(sample)
            read_length = probe.read_length(sample)
            if preprocess_jobs:
                depends = _depends_on(preprocess_jobs, [job_name(PREPROCESS, sample=sample)])
            else:
                depends = Dependency.none()
            cmd = ("{java} -bamfile {bam} -h {ref} -t {archive} -w {work_dir} "
                   "-r {read_length} -c {coverage}").format(
                       java=_java_cmd(config, INDIV), bam=shlex.quote(sample.bam_file),
                       ref=shlex.quote(config.ref_file),
                       archive=shlex.quote(family.archive), work_dir=shlex.quote(work_dir),
                       read_length=read_length,
                       coverage=_fmt_coverage(coverage))
            jobs.append(_job(config, INDIV, job_name(INDIV, family, sample), cmd, depends))
    return jobs

def group_read_length(samples, probe):
    """Read length for group analysis: the longest read length of any sample.
    """
    return max(probe.read_length(x) for x in samples)

def plan_group(config, samples, families, probe, indiv_jobs):
    """Merge individual discovery results for each reference family.
    """
    read_length = group_read_length(samples, probe)
    logger.debug("Using read length %s for group analysis" % read_length)
    jobs = []
    for family in families:
        work_dir = config_utils.discovery_dir(config, family)
        depends = _depends_on(indiv_jobs, [job_name(INDIV, family, x) for x in samples])
        cmd = ("{java} -discoverydir {work_dir} -w {work_dir} -t {archive} -h {ref} "
               "-n {genes} -r {read_length}").format(
                   java=_java_cmd(config, GROUP), work_dir=shlex.quote(work_dir),
                   archive=shlex.quote(family.archive), ref=shlex.quote(config.ref_file),
                   genes=shlex.quote(config.gene_file), read_length=read_length)
        jobs.append(_job(config, GROUP, job_name(GROUP, family), cmd, depends))
    return jobs

def sample_insert_size(sample, metadata, probe):
    """Insert size from the metadata table, falling back to the sample histogram.
    """
    insert_size = metadata.insert_size(sample)
    if insert_size is None:
        insert_size = probe.insert_size(sample)
    return insert_size

def plan_genotype(config, samples, families, metadata, probe, group_jobs):
    """Genotype each sample against the merged sites of each reference family.

    Every job rewrites the family manifest of per-sample results once the
    tool finishes, keeping the tool's exit status for the scheduler. The
    listing goes to a per-job file first and is renamed over the manifest,
    so jobs finishing together never interleave their writes.
    """
    jobs = []
    for family in families:
        work_dir = config_utils.discovery_dir(config, family)
        manifest = config_utils.manifest_file(config, family)
        depends = _depends_on(group_jobs, [job_name(GROUP, family)])
        for sample in samples:
            tlen = template_length(sample_insert_size(sample, metadata, probe),
                                   probe.read_length(sample))
            tx_manifest = "%s.%s.tmp" % (manifest, sample.name)
            cmd = ("{java} -bamfile {bam} -h {ref} -t {archive} -w {work_dir} -p {work_dir} "
                   "-e {tlen}; rc=$?; ls {work_dir}/*.{results} > {tx_manifest} "
                   "&& mv {tx_manifest} {manifest}; exit $rc").format(
                       java=_java_cmd(config, GENOTYPE), bam=shlex.quote(sample.bam_file),
                       ref=shlex.quote(config.ref_file), archive=shlex.quote(family.archive),
                       work_dir=shlex.quote(work_dir), tlen=tlen,
                       results=shlex.quote("%s.tsv" % family.name),
                       tx_manifest=shlex.quote(tx_manifest), manifest=shlex.quote(manifest))
            jobs.append(_job(config, GENOTYPE, job_name(GENOTYPE, family, sample), cmd, depends))
    return jobs

def plan_makevcf(config, samples, families, genotype_jobs):
    """Merge per-sample genotypes into a final VCF for each reference family.
    """
    jobs = []
    for family in families:
        work_dir = config_utils.discovery_dir(config, family)
        depends = _depends_on(genotype_jobs, [job_name(GENOTYPE, family, x) for x in samples])
        cmd = ("{java} -genotypingdir {work_dir} -h {ref} -t {archive} -w {work_dir} "
               "-p {work_dir} -list {manifest} -o {out_dir}").format(
                   java=_java_cmd(config, MAKEVCF), work_dir=shlex.quote(work_dir),
                   ref=shlex.quote(config.ref_file), archive=shlex.quote(family.archive),
                   manifest=shlex.quote(config_utils.manifest_file(config, family)),
                   out_dir=shlex.quote(config.out_dir))
        jobs.append(_job(config, MAKEVCF, job_name(MAKEVCF, family), cmd, depends))
    return jobs
