"""Loads configurations from .yaml files and command line arguments.

All planning code receives a single RunConfig, built once per invocation,
holding input paths, flags and per-stage resource requests.
"""
import collections
import os
import re

import toolz as tz
import yaml

from meltsplit import utils


class ConfigurationError(Exception):
    pass

DEFAULT_RESOURCES = {"default": {"cores": 1, "memory": "8G"},
                     "Preprocess": {"cores": 1, "memory": "4G"},
                     "IndivAnalysis": {"cores": 1, "memory": "8G"},
                     "GroupAnalysis": {"cores": 1, "memory": "16G"},
                     "Genotype": {"cores": 1, "memory": "8G"},
                     "MakeVCF": {"cores": 1, "memory": "16G"}}

RunConfig = collections.namedtuple("RunConfig",
                                   ["work_dir", "out_dir", "log_dir", "ref_file", "family_dir",
                                    "tool", "metadata_file", "gene_file", "java", "queue",
                                    "max_records", "preprocess", "dry_run", "histogram_dir",
                                    "read_length_reads", "resources"])

Memory = collections.namedtuple("Memory", "amount unit")

_memory_pat = re.compile(r"^(?P<amount>\d+)(?P<unit>[KMGT])B?$", re.IGNORECASE)

# ## YAML system configuration

def load_config(config_file):
    """Load YAML config file, replacing environmental variables.
    """
    with open(config_file) as in_handle:
        config = yaml.safe_load(in_handle) or {}
    config = _expand_paths(config)
    if "resources" not in config:
        config["resources"] = {}
    if "algorithm" not in config:
        config["algorithm"] = {}
    return config

def _expand_paths(config):
    for field, setting in config.items():
        if isinstance(config[field], dict):
            config[field] = _expand_paths(config[field])
        else:
            config[field] = utils.expand_path(setting)
    return config

def merge_resources(config=None):
    """Combine default stage resources with those from a system configuration.
    """
    out = {k: dict(v) for k, v in DEFAULT_RESOURCES.items()}
    for stage, vals in tz.get_in(["resources"], config or {}, {}).items():
        if not isinstance(vals, dict):
            raise ConfigurationError("Resources for %s need to be a dictionary of cores and "
                                     "memory, found: %s" % (stage, vals))
        out.setdefault(stage, {}).update(vals)
    return out

def get_resources(name, config):
    """Retrieve resources for a pipeline stage, falling back to defaults.
    """
    resources = config.resources if isinstance(config, RunConfig) else config
    base = dict(tz.get_in(["default"], resources, {}))
    base.update(tz.get_in([name], resources, {}))
    return base

def parse_memory(mem_str):
    """Split a memory specification like 8G into amount and unit.
    """
    match = _memory_pat.match(str(mem_str).strip())
    if not match:
        raise ConfigurationError("Unexpected memory specification %s, "
                                 "need a number and unit like 8G or 500M" % mem_str)
    return Memory(int(match.group("amount")), match.group("unit").upper())

def get_cores(name, config):
    cores = int(get_resources(name, config).get("cores", 1))
    if cores < 1:
        raise ConfigurationError("Need at least one core for %s, found %s" % (name, cores))
    return cores

def get_memory(name, config):
    return parse_memory(get_resources(name, config).get("memory", "8G"))

# ## Command line arguments

def from_args(args):
    """Build the run configuration from parsed command line arguments.
    """
    system_config = load_config(args.system_config) if args.system_config else {}
    work_dir = utils.get_abspath(args.workdir)
    log_dir = utils.get_abspath(args.logdir) if args.logdir else os.path.join(work_dir, "logs")
    if args.max_records < 1:
        raise ConfigurationError("In memory record cap needs to be positive, found %s"
                                 % args.max_records)
    return RunConfig(work_dir=work_dir,
                     out_dir=utils.get_abspath(args.outdir),
                     log_dir=log_dir,
                     ref_file=utils.get_abspath(args.ref),
                     family_dir=utils.get_abspath(args.families),
                     tool=utils.get_abspath(args.tool),
                     metadata_file=utils.get_abspath(args.metadata),
                     gene_file=utils.get_abspath(args.genes),
                     java=args.java,
                     queue=args.queue,
                     max_records=args.max_records,
                     preprocess=args.preprocess,
                     dry_run=args.dry_run,
                     histogram_dir=utils.get_abspath(args.histogram_dir) if args.histogram_dir else None,
                     read_length_reads=int(tz.get_in(["algorithm", "read_length_reads"],
                                                     system_config, 1000)),
                     resources=merge_resources(system_config))

def discovery_dir(config, family):
    """Shared working directory for intermediate outputs of a reference family.
    """
    return os.path.join(config.work_dir, "%s_DISCOVERY" % family.name)

def manifest_file(config, family):
    return os.path.join(config.work_dir, "%s.list" % family.name)
