import os

import pytest

from meltsplit.bam import ProbeError
from meltsplit.pipeline import stages
from meltsplit.pipeline.jobs import Dependency
from meltsplit.pipeline.metadata import MetadataLookupError, MetadataStore, SampleMetadata


@pytest.fixture
def indiv_jobs(run_config, samples, families, meta, probe):
    return stages.plan_indiv(run_config, samples, families, meta, probe)


@pytest.fixture
def group_jobs(run_config, samples, families, probe, indiv_jobs):
    return stages.plan_group(run_config, samples, families, probe, indiv_jobs)


@pytest.fixture
def genotype_jobs(run_config, samples, families, meta, probe, group_jobs):
    return stages.plan_genotype(run_config, samples, families, meta, probe, group_jobs)


def test_preprocess_one_job_per_sample(run_config, samples):
    jobs = stages.plan_preprocess(run_config, samples)
    assert [x.name for x in jobs] == ['NA12878.PRE', 'NA12891.PRE', 'NA12892.PRE']
    assert all(not x.depends for x in jobs)
    assert jobs[0].command == ('java -Xmx4G -Dsamjdk.max_records_in_ram=5000 '
                               '-jar /tools/MELT.jar Preprocess '
                               '-bamfile /data/NA12878.bam -h /ref/hg38.fa')


def test_indiv_one_job_per_family_and_sample(indiv_jobs, samples, families):
    names = [x.name for x in indiv_jobs]
    assert len(names) == len(samples) * len(families)
    assert len(set(names)) == len(names)
    assert names[:3] == ['ALU_MELT.NA12878.IND', 'ALU_MELT.NA12891.IND', 'ALU_MELT.NA12892.IND']


def test_indiv_command(indiv_jobs, work_dir):
    job = indiv_jobs[1]
    assert job.command.endswith(
        'IndivAnalysis -bamfile /data/NA12891.bam -h /ref/hg38.fa -t /me/ALU_MELT.zip '
        '-w %s -r 150 -c 28.5' % os.path.join(work_dir, 'ALU_MELT_DISCOVERY'))
    assert job.stdout == os.path.join(work_dir, 'logs', 'IndivAnalysis.ALU_MELT.NA12891.IND.out')
    assert job.stderr == os.path.join(work_dir, 'logs', 'IndivAnalysis.ALU_MELT.NA12891.IND.err')
    assert job.cores == 1
    assert (job.memory.amount, job.memory.unit) == (8, 'G')


def test_indiv_without_preprocess_has_no_dependencies(indiv_jobs):
    assert all(not x.depends for x in indiv_jobs)


def test_indiv_depends_on_sample_preprocess(run_config, samples, families, meta, probe):
    pre_jobs = stages.plan_preprocess(run_config, samples)
    jobs = stages.plan_indiv(run_config, samples, families, meta, probe, pre_jobs)
    assert jobs[0].depends.render() == 'done(NA12878.PRE)'
    assert jobs[5].depends.render() == 'done(NA12892.PRE)'


def test_indiv_missing_metadata_fails(run_config, samples, families, probe):
    meta = MetadataStore({"NA12878": SampleMetadata(30.0, 300)})
    with pytest.raises(MetadataLookupError):
        stages.plan_indiv(run_config, samples, families, meta, probe)
    probe.read_length.assert_called_once_with(samples[0])


def test_group_one_job_per_family(group_jobs, families):
    assert [x.name for x in group_jobs] == ['ALU_MELT.GROUP', 'LINE1_MELT.GROUP']


def test_group_depends_on_family_indiv_jobs(group_jobs):
    assert group_jobs[1].depends == Dependency(['LINE1_MELT.NA12878.IND',
                                                'LINE1_MELT.NA12891.IND',
                                                'LINE1_MELT.NA12892.IND'])


def test_group_uses_longest_read_length(group_jobs, run_config):
    assert group_jobs[0].command.endswith('-n /ref/hg38.genes.bed -r 150')
    assert '-Xmx16G' in group_jobs[0].command


def test_group_refuses_unplanned_dependencies(run_config, samples, families, probe, indiv_jobs):
    with pytest.raises(ValueError):
        stages.plan_group(run_config, samples, families, probe, indiv_jobs[:3])


def test_genotype_depends_only_on_family_group(genotype_jobs, samples, families):
    assert len(genotype_jobs) == len(samples) * len(families)
    for job in genotype_jobs:
        family = job.name.split('.')[0]
        assert job.depends.render() == 'done(%s.GROUP)' % family


def test_genotype_template_length(genotype_jobs):
    # insert size from metadata: 300 + 2 * 100
    assert ' -e 500;' in genotype_jobs[0].command
    # insert size from histogram: 400 + 2 * 150
    assert ' -e 700;' in genotype_jobs[1].command


def test_genotype_histogram_only_for_missing_insert_size(genotype_jobs, samples, probe):
    assert probe.insert_size.call_count == 2
    probe.insert_size.assert_called_with(samples[1])


def test_genotype_writes_manifest(genotype_jobs, work_dir):
    discovery = os.path.join(work_dir, 'ALU_MELT_DISCOVERY')
    manifest = os.path.join(work_dir, 'ALU_MELT.list')
    assert genotype_jobs[0].command.endswith(
        '; rc=$?; ls %s/*.ALU_MELT.tsv > %s.NA12878.tmp && mv %s.NA12878.tmp %s; exit $rc'
        % (discovery, manifest, manifest, manifest))


def test_genotype_manifest_files_are_per_job(genotype_jobs):
    tmp_files = [x.command.split(' > ')[1].split()[0] for x in genotype_jobs]
    assert len(set(tmp_files)) == len(genotype_jobs)


def test_genotype_probe_failure_propagates(run_config, samples, families, meta, probe, group_jobs):
    probe.insert_size.side_effect = ProbeError('no histogram')
    with pytest.raises(ProbeError):
        stages.plan_genotype(run_config, samples, families, meta, probe, group_jobs)


def test_makevcf_depends_on_family_genotypes(run_config, samples, families, genotype_jobs):
    jobs = stages.plan_makevcf(run_config, samples, families, genotype_jobs)
    assert [x.name for x in jobs] == ['ALU_MELT.VCF', 'LINE1_MELT.VCF']
    assert list(jobs[0].depends) == ['ALU_MELT.NA12878.GENO', 'ALU_MELT.NA12891.GENO',
                                     'ALU_MELT.NA12892.GENO']


def test_makevcf_command(run_config, samples, families, genotype_jobs, work_dir):
    job = stages.plan_makevcf(run_config, samples, families, genotype_jobs)[0]
    assert '-list %s' % os.path.join(work_dir, 'ALU_MELT.list') in job.command
    assert job.command.endswith('-o %s' % run_config.out_dir)


def test_replanning_is_deterministic(run_config, samples, families, meta, probe):
    def plan():
        indiv = stages.plan_indiv(run_config, samples, families, meta, probe)
        group = stages.plan_group(run_config, samples, families, probe, indiv)
        geno = stages.plan_genotype(run_config, samples, families, meta, probe, group)
        return indiv + group + geno + stages.plan_makevcf(run_config, samples, families, geno)
    assert plan() == plan()


def test_stage_resources_from_config(run_config, samples):
    resources = dict(run_config.resources)
    resources['Preprocess'] = {'cores': 4, 'memory': '12G'}
    config = run_config._replace(resources=resources)
    job = stages.plan_preprocess(config, samples)[0]
    assert job.cores == 4
    assert '-Xmx12G' in job.command


def test_paths_are_shell_quoted(run_config, samples, families, meta, probe, tmpdir):
    config = run_config._replace(work_dir=str(tmpdir.join('my work')),
                                 ref_file='/ref dir/hg38.fa')
    sample = samples[0]._replace(bam_file='/data/run 1/NA12878.bam')
    family = families[0]._replace(archive='/me/ALU$(rm).zip')
    indiv = stages.plan_indiv(config, [sample], [family], meta, probe)
    group = stages.plan_group(config, [sample], [family], probe, indiv)
    geno = stages.plan_genotype(config, [sample], [family], meta, probe, group)
    vcf = stages.plan_makevcf(config, [sample], [family], geno)
    discovery = "'%s'" % os.path.join(str(tmpdir), 'my work', 'ALU_MELT_DISCOVERY')
    assert "-bamfile '/data/run 1/NA12878.bam' -h '/ref dir/hg38.fa'" in indiv[0].command
    assert "-t '/me/ALU$(rm).zip' -w %s " % discovery in indiv[0].command
    assert "-discoverydir %s" % discovery in group[0].command
    assert "ls %s/*.ALU_MELT.tsv" % discovery in geno[0].command
    assert "-list '%s'" % os.path.join(str(tmpdir), 'my work', 'ALU_MELT.list') in vcf[0].command
