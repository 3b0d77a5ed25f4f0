"""Main entry point for planning and submitting the discovery pipeline.

Stages run in order, each fully planned before any of its jobs are submitted:
Preprocess (optional), IndivAnalysis, GroupAnalysis, Genotype and MakeVCF.
Jobs are only submitted here, never waited on; ordering at run time comes from
the dependencies handed to the scheduler.
"""
import argparse
import collections
import sys

from meltsplit import log, utils
from meltsplit.bam import AlignmentProbe
from meltsplit.distributed.lsf import LsfClient
from meltsplit.log import logger
from meltsplit.pipeline import config_utils, metadata, references, stages, version
from meltsplit.pipeline.jobs import (PREPROCESS, INDIV, GROUP, GENOTYPE, MAKEVCF,
                                     samples_from_files)

def run_main(config, bam_files, families=None, client=None, probe=None):
    """Plan and submit all pipeline stages, returning the jobs for each stage.
    """
    if families is None:
        families = references.get_families(config.family_dir)
    samples = samples_from_files(bam_files)
    setup_workspace(config, families)
    if client is None:
        client = LsfClient(config.queue, config.dry_run)
    if probe is None:
        probe = AlignmentProbe(config.ref_file, config.histogram_dir, config.read_length_reads)
    meta = metadata.load(config.metadata_file)
    logger.info("Planning jobs for %s samples and %s reference families"
                % (len(samples), len(families)))
    out = collections.OrderedDict()
    if config.preprocess:
        out[PREPROCESS] = _submit(client, PREPROCESS, stages.plan_preprocess(config, samples))
    out[INDIV] = _submit(client, INDIV,
                         stages.plan_indiv(config, samples, families, meta, probe,
                                           out.get(PREPROCESS)))
    out[GROUP] = _submit(client, GROUP,
                         stages.plan_group(config, samples, families, probe, out[INDIV]))
    out[GENOTYPE] = _submit(client, GENOTYPE,
                            stages.plan_genotype(config, samples, families, meta, probe,
                                                 out[GROUP]))
    out[MAKEVCF] = _submit(client, MAKEVCF,
                           stages.plan_makevcf(config, samples, families, out[GENOTYPE]))
    logger.info("%s %s jobs across %s stages"
                % ("Planned" if config.dry_run else "Submitted",
                   sum(len(x) for x in out.values()), len(out)))
    return out

def _submit(client, stage, jobs):
    logger.info("%s: %s jobs" % (stage, len(jobs)))
    client.submit_all(jobs)
    return jobs

def setup_workspace(config, families):
    """Create per-family discovery directories, output and log directories.
    """
    for family in families:
        utils.safe_makedir(config_utils.discovery_dir(config, family))
    utils.safe_makedir(config.out_dir)
    utils.safe_makedir(config.log_dir)

def parse_cl_args(in_args):
    """Parse input commandline arguments, exiting with usage on missing inputs.
    """
    description = ("Plan and submit mobile element discovery and genotyping "
                   "jobs to an LSF cluster.")
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("-o", "--outdir", required=True,
                        help="Directory for final merged VCF output")
    parser.add_argument("-w", "--workdir", required=True,
                        help="Working directory for intermediate discovery files")
    parser.add_argument("-r", "--ref", required=True,
                        help="Reference genome FASTA file")
    parser.add_argument("-t", "--families", required=True,
                        help="Directory of reference element family archives (.zip)")
    parser.add_argument("-m", "--tool", required=True,
                        help="Path to the analysis tool jar")
    parser.add_argument("-c", "--metadata", required=True,
                        help=("Whitespace delimited file of sample, coverage and "
                              "optional insert size"))
    parser.add_argument("-g", "--genes", required=True,
                        help="Gene annotation file used in group analysis")
    parser.add_argument("-l", "--logdir",
                        help="Directory for job logs. Defaults to <workdir>/logs")
    parser.add_argument("-j", "--java", default="java",
                        help="Java runtime to use. Defaults to java on the PATH")
    parser.add_argument("-q", "--queue",
                        help="Scheduler queue to submit jobs to")
    parser.add_argument("-x", "--max-records", type=int, default=5000,
                        help="Maximum alignment records held in memory. Defaults to 5000")
    parser.add_argument("-p", "--preprocess", action="store_true", default=False,
                        help="Run preprocessing of alignment files before analysis")
    parser.add_argument("-d", "--dry-run", action="store_true", default=False,
                        help="Print submission commands without submitting")
    parser.add_argument("--histogram-dir",
                        help=("Directory of <sample>.insert_size.hist files, used for samples "
                              "without an insert size in the metadata file. Defaults to the "
                              "directory of each alignment file"))
    parser.add_argument("--system-config",
                        help="YAML file with per-stage resources (cores, memory)")
    parser.add_argument("-v", "--version", action="version", version=version.__version__)
    parser.add_argument("bam_files", nargs="+",
                        help="Alignment files (BAM or CRAM) to analyze")
    args = parser.parse_args(in_args)
    return parser, args

def main(in_args=None):
    parser, args = parse_cl_args(sys.argv[1:] if in_args is None else in_args)
    try:
        config = config_utils.from_args(args)
        # log files live in the workspace, which needs reference families first
        families = references.get_families(config.family_dir)
        handler = log.setup_local_logging(config.log_dir)
        try:
            run_main(config, args.bam_files, families)
        finally:
            handler.pop_thread()
            handler.close()
    except config_utils.ConfigurationError as e:
        parser.print_usage(sys.stderr)
        sys.stderr.write("error: %s\n" % e)
        sys.exit(1)
