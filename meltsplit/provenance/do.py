"""Centralize running of external commands, providing logging and tracking.
"""
import collections
import subprocess

from meltsplit.log import logger, logger_cl


def run(cmd, descr=None, log_error=True, env=None):
    """Run the provided command, logging details and checking for errors.

    Returns the command output, which callers like scheduler submission need
    to parse.
    """
    if descr:
        logger.debug(descr)
    try:
        logger_cl.debug(" ".join(str(x) for x in cmd) if not isinstance(cmd, str) else cmd)
        return _do_run(cmd, env=env)
    except Exception:
        if log_error:
            logger.exception()
        raise

def _normalize_cmd_args(cmd):
    """Normalize subprocess arguments to handle list commands and strings.
    """
    if isinstance(cmd, str):
        return cmd, True
    else:
        return [str(x) for x in cmd], False

def _do_run(cmd, env=None):
    """Perform running and check results, raising errors for issues.
    """
    cmd, shell_arg = _normalize_cmd_args(cmd)
    s = subprocess.Popen(
        cmd,
        shell=shell_arg,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        close_fds=True,
        env=env,
    )
    output = []
    debug_stdout = collections.deque(maxlen=100)
    for line in s.stdout:
        line = line.decode("utf-8", errors="replace")
        output.append(line)
        debug_stdout.append(line)
        if line.rstrip():
            logger.debug(line.rstrip())
    exitcode = s.wait()
    s.stdout.close()
    if exitcode != 0:
        error_msg = " ".join(cmd) if not isinstance(cmd, str) else cmd
        error_msg += "\n"
        error_msg += "".join(debug_stdout)
        raise subprocess.CalledProcessError(exitcode, error_msg)
    return "".join(output)
