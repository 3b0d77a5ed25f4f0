import os

import mock
import pytest

from meltsplit.pipeline import config_utils
from meltsplit.pipeline.jobs import Sample
from meltsplit.pipeline.metadata import MetadataStore, SampleMetadata
from meltsplit.pipeline.references import ReferenceFamily


@pytest.fixture
def work_dir(tmpdir):
    return str(tmpdir.mkdir("work"))


@pytest.fixture
def run_config(tmpdir, work_dir):
    return config_utils.RunConfig(
        work_dir=work_dir,
        out_dir=os.path.join(str(tmpdir), "out"),
        log_dir=os.path.join(work_dir, "logs"),
        ref_file="/ref/hg38.fa",
        family_dir=os.path.join(str(tmpdir), "families"),
        tool="/tools/MELT.jar",
        metadata_file=os.path.join(str(tmpdir), "coverage.txt"),
        gene_file="/ref/hg38.genes.bed",
        java="java",
        queue=None,
        max_records=5000,
        preprocess=False,
        dry_run=True,
        histogram_dir=None,
        read_length_reads=1000,
        resources=config_utils.merge_resources())


@pytest.fixture
def samples():
    return [Sample("NA12878", "/data/NA12878.bam"),
            Sample("NA12891", "/data/NA12891.bam"),
            Sample("NA12892", "/data/NA12892.bam")]


@pytest.fixture
def families():
    return [ReferenceFamily("ALU_MELT", "/me/ALU_MELT.zip"),
            ReferenceFamily("LINE1_MELT", "/me/LINE1_MELT.zip")]


@pytest.fixture
def meta():
    return MetadataStore({"NA12878": SampleMetadata(30.0, 300),
                          "NA12891": SampleMetadata(28.5, None),
                          "NA12892": SampleMetadata(31.0, 350)}, "coverage.txt")


@pytest.fixture
def probe():
    read_lengths = {"NA12878": 100, "NA12891": 150, "NA12892": 100}
    p = mock.Mock()
    p.read_length.side_effect = lambda sample: read_lengths[sample.name]
    p.insert_size.return_value = 400
    return p
