#!/usr/bin/env python -Es
"""Plan and submit mobile element discovery jobs to an LSF cluster.

Usage:
  meltsplit_submit.py -o <outdir> -w <workdir> -r <ref.fa> -t <family dir>
                      -m <tool.jar> -c <coverage file> -g <genes.bed>
                      [options] <bam files>
     -p run preprocessing of the alignment files first
     -d print bsub commands instead of submitting them
     -q queue to submit jobs to
"""
import sys

from meltsplit.pipeline.main import main

if __name__ == "__main__":
    main(sys.argv[1:])
