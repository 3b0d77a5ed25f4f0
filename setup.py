#!/usr/bin/env python

"""Setup file and install script for meltsplit LSF job submission"""

import os
import subprocess

import setuptools

VERSION = '0.3.0'

# add version number and git commit hash of the current revision to version.py
try:
    git_run = subprocess.run(['git', 'rev-parse', '--short', 'HEAD'], stdout=subprocess.PIPE,
                             stderr=subprocess.DEVNULL)
    git_run.check_returncode()
except (OSError, subprocess.SubprocessError):
    commit_hash = ''
else:
    commit_hash = git_run.stdout.strip().decode()

here = os.path.dirname(os.path.abspath(__file__))
with open(os.path.join(here, 'meltsplit', 'pipeline', 'version.py'), 'w') as version_file:
    version_file.writelines([f'__version__ = "{VERSION}"\n',
                             f'__git_revision__ = "{commit_hash}"\n'])

setuptools.setup(
    name='meltsplit',
    version=VERSION,
    description='Plan and submit split mobile element discovery pipelines to LSF',
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    scripts=['scripts/meltsplit_submit.py'],
    entry_points={
        'console_scripts': [
            'meltsplit = meltsplit.pipeline.main:main',
        ],
    },
    python_requires='>=3.6',
    install_requires=[
        'logbook',
        'numpy',
        'pysam',
        'pyyaml',
        'toolz',
    ],
    extras_require={
        'test': [
            'mock',
            'pytest',
            'pytest-mock',
        ],
    },
)
