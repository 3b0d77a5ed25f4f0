"""Reference element families, one per archive in the family directory.
"""
import collections
import os

from meltsplit import utils
from meltsplit.log import logger
from meltsplit.pipeline.config_utils import ConfigurationError

ARCHIVE_EXT = ".zip"

ReferenceFamily = collections.namedtuple("ReferenceFamily", "name archive")

class NoReferencesFound(ConfigurationError):
    pass

def get_families(family_dir):
    """Retrieve reference families, ordered by archive file name.
    """
    if not family_dir or not os.path.isdir(family_dir):
        raise NoReferencesFound("Reference family directory not found: %s" % family_dir)
    families = [ReferenceFamily(os.path.splitext(os.path.basename(x))[0], os.path.abspath(x))
                for x in utils.list_files(family_dir, ARCHIVE_EXT)]
    if not families:
        raise NoReferencesFound("No %s reference family archives found in %s"
                                % (ARCHIVE_EXT, family_dir))
    logger.info("Found %s reference families in %s: %s"
                % (len(families), family_dir, ", ".join(x.name for x in families)))
    return families
