"""Helpful utilities for building job submission pipelines.
"""
import glob
import os
import time

import toolz as tz


def safe_makedir(dname):
    """Make a directory if it doesn't exist, handling concurrent race conditions.
    """
    if not dname:
        return dname
    num_tries = 0
    max_tries = 5
    while not os.path.exists(dname):
        # we could get an error here if multiple processes are creating
        # the directory at the same time. Grr, concurrency.
        try:
            os.makedirs(dname)
        except OSError:
            if num_tries > max_tries:
                raise
            num_tries += 1
            time.sleep(2)
    return dname

def splitext_plus(f):
    """Split on file extensions, allowing for zipped extensions.
    """
    base, ext = os.path.splitext(f)
    if ext in [".gz", ".bz2", ".zip"]:
        base, ext2 = os.path.splitext(base)
        ext = ext2 + ext
    return base, ext

def file_stem(f):
    """Base name of a file with any extensions removed.
    """
    return splitext_plus(os.path.basename(f))[0]

def get_abspath(path, pardir=None):
    if pardir is None:
        pardir = os.getcwd()
    path = os.path.expandvars(os.path.expanduser(path))
    return os.path.normpath(os.path.join(pardir, path))

def expand_path(path):
    """Combines os.path.expandvars with replacing ~ with $HOME.
    """
    try:
        return os.path.expandvars(path.replace("~", os.environ["HOME"]))
    except AttributeError:
        return path

def list_files(dname, ext):
    """Sorted list of files with a given extension directly within a directory.
    """
    return sorted((x for x in glob.glob(os.path.join(dname, "*%s" % ext)) if os.path.isfile(x)),
                  key=os.path.basename)

def unique(xs):
    """Remove duplicates from a sequence, keeping first seen order.
    """
    return list(tz.unique(xs))
