"""Commandline interaction with LSF schedulers.
"""
import re
import shlex
import subprocess

from meltsplit.log import logger, logger_stdout
from meltsplit.provenance import do

_jobid_pat = re.compile(r"Job <(?P<jobid>\d+)> is")

class SubmissionError(Exception):
    pass

def bsub_args(job, queue=None):
    """Scheduler arguments for a job, placing all of its cores on a single host.
    """
    mem = "%s%s" % (job.memory.amount, job.memory.unit)
    args = ["-J", job.name, "-n", str(job.cores), "-M", mem,
            "-R", "span[hosts=1] rusage[mem=%s]" % mem]
    if queue:
        args += ["-q", queue]
    if job.depends:
        args += ["-w", job.depends.render()]
    args += ["-o", job.stdout, "-e", job.stderr]
    return args

def submit_cl(scheduler_args, command):
    return ["bsub"] + scheduler_args + [command]

def submit_job(scheduler_args, command):
    """Submit a job to the scheduler, returning the supplied job ID.
    """
    cl = submit_cl(scheduler_args, command)
    try:
        status = do.run(cl, "Submitting %s" % command)
    except (subprocess.CalledProcessError, OSError) as e:
        raise SubmissionError("Scheduler did not accept job: %s" % e)
    match = _jobid_pat.search(status)
    if not match:
        raise SubmissionError("Could not find a job ID in scheduler output: %s" % status)
    return match.group("jobid")

class LsfClient(object):
    """Submit planned jobs to LSF, or print their submission in dry run mode.

    Keeps the full submission command of every job and the scheduler ID of
    every accepted job.
    """
    def __init__(self, queue=None, dry_run=False):
        self.queue = queue
        self.dry_run = dry_run
        self.commands = []
        self.submitted = []

    def submit(self, job):
        scheduler_args = bsub_args(job, self.queue)
        cl = submit_cl(scheduler_args, job.command)
        self.commands.append(" ".join(shlex.quote(x) for x in cl))
        if self.dry_run:
            logger_stdout.info(self.commands[-1])
            return None
        jobid = submit_job(scheduler_args, job.command)
        logger.info("Submitted %s as LSF job %s" % (job.name, jobid))
        self.submitted.append((job.name, jobid))
        return jobid

    def submit_all(self, jobs):
        return [self.submit(j) for j in jobs]
