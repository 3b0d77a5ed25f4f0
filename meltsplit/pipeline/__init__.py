"""High level code for planning mobile element discovery jobs.

This structures processing steps into the following modules:

  - config_utils.py: Run configuration from arguments and YAML resources.
  - metadata.py: Per-sample coverage and insert size lookups.
  - references.py: Reference element families to analyze.
  - jobs.py: Job names, descriptions and dependencies.
  - stages.py: Planning of each pipeline stage.
  - main.py: Ordering of stages and submission.
"""
