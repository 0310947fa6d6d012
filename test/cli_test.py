# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import os

import pytest

import release_changelog.cli as rcli
import release_changelog.config as rccfg
import release_changelog.inputs as rci
import release_changelog.model as rcm


@pytest.fixture
def provider(fake_provider, make_tag, make_commit, make_pull):
    return fake_provider(
        tags=[make_tag('v2.0.0'), make_tag('v1.0.0')],
        commits=[
            make_commit('c2', 'add feature', author='alice'),
            make_commit('c1', 'typo', author='bob'),
        ],
        commit_pulls={
            'c2': [make_pull(5, title='Add feature', author='alice', labels=('feature',))],
        },
        annotations={'v2.0.0': 'Release v2.0.0'},
    )


@pytest.fixture
def env(tmpdir):
    return {
        'GITHUB_REPOSITORY': 'gardener/example',
        'GITHUB_WORKSPACE': str(tmpdir),
        'GITHUB_TOKEN': 'token',
    }


def _factory(provider, created=None):
    def create_provider(**kwargs):
        if created is not None:
            created.append(kwargs)
        return provider
    return create_provider


def test_generate_changelog(provider, env):
    created = []
    inputs = rci.ParsedInputs(
        mode=rcm.Mode.HYBRID,
        fetch_tag_annotations=True,
        prefix_message='# Release',
    )

    result = rcli.run(inputs, env=env, provider_factory=_factory(provider, created))

    assert not result.failed
    assert result.changelog == (
        '# Release\n'
        '## 🚀 Features\n'
        '- Add feature\n'
        '   - PR: #5\n'
        '\n'
        '## Other Changes\n'
        '- typo'
    )
    assert result.outputs() == {
        'changelog': result.changelog,
        'owner': 'gardener',
        'repo': 'example',
        'fromTag': 'v1.0.0',
        'toTag': 'v2.0.0',
        'contributors': 'alice, bob',
        'pullRequests': '5',
        'failed': 'false',
        'tagAnnotation': 'Release v2.0.0',
    }
    assert created == [{
        'platform': rcm.Platform.GITHUB,
        'token': 'token',
        'base_url': 'https://api.github.com',
        'repository_path': env['GITHUB_WORKSPACE'],
        'verify_ssl': True,
    }]


def test_pipeline_is_sequenced(provider, env):
    rcli.run(
        rci.ParsedInputs(mode=rcm.Mode.PR),
        env=env,
        provider_factory=_factory(provider),
    )

    call_names = [call[0] for call in provider.calls]
    assert call_names[0] == 'tags'
    assert call_names[1] == 'diff_remote'
    assert set(call_names[2:]) == {'for_commit_hash'}


def test_local_platform_rejects_pr_mode(provider, env):
    result = rcli.run(
        rci.ParsedInputs(platform=rcm.Platform.GIT, mode=rcm.Mode.PR, repo='o/r'),
        env=env,
        provider_factory=_factory(provider),
    )

    assert result.failed
    assert result.changelog == (
        '⚠️ Changelog generation failed: PR and HYBRID modes are not supported for git '
        'platform. Use COMMIT mode instead.'
    )
    assert provider.calls == []


def test_no_tags_fallback(fake_provider, env):
    result = rcli.run(
        rci.ParsedInputs(prefix_message='before', postfix_message='after'),
        env=env,
        provider_factory=_factory(fake_provider()),
    )

    assert result.failed
    assert result.changelog == (
        'before\n'
        '⚠️ No tags found in repository\n\n- no changes\n'
        'after'
    )
    outputs = result.outputs()
    assert outputs['failed'] == 'true'
    for name in ('owner', 'repo', 'fromTag', 'toTag', 'contributors', 'pullRequests'):
        assert outputs[name] == ''
    assert 'tagAnnotation' not in outputs


def test_fallback_changelog_uses_template():
    cfg = rccfg.merge_with_defaults({'template': '# Changes\n#{{CHANGELOG}}'})

    assert rcli.fallback_changelog('boom', cfg) == \
        '# Changes\n⚠️ Changelog generation failed: boom'


def test_format_output():
    assert rcli.format_output('failed', 'false') == 'failed=false\n'

    formatted = rcli.format_output('changelog', 'line 1\nline 2')
    header, *body, footer, trailing = formatted.split('\n')

    assert header.startswith('changelog<<ghadelimiter_')
    assert body == ['line 1', 'line 2']
    assert footer == header.removeprefix('changelog<<')
    assert trailing == ''


def test_write_outputs(tmpdir):
    output_file = os.path.join(tmpdir, 'output')

    rcli.write_outputs({'owner': 'o', 'repo': 'r'}, env={'GITEA_OUTPUT': output_file})

    with open(output_file) as f:
        assert f.read() == 'owner=o\nrepo=r\n'


@pytest.fixture
def no_logging_setup(monkeypatch):
    # keep pytest's log-capturing handlers in place
    monkeypatch.setattr(rcli.ci.log, 'configure_default_logging', lambda *args, **kwargs: None)


def test_main(monkeypatch, tmpdir, capsys, provider, no_logging_setup):
    output_file = os.path.join(tmpdir, 'output')
    monkeypatch.delenv('GITEA_OUTPUT', raising=False)
    monkeypatch.setenv('GITHUB_OUTPUT', output_file)
    monkeypatch.setenv('GITHUB_REPOSITORY', 'o/r')
    monkeypatch.setenv('GITHUB_WORKSPACE', str(tmpdir))
    monkeypatch.setattr(
        rcli,
        'run',
        lambda inputs: rcli.generate_changelog(inputs, provider_factory=_factory(provider)),
    )

    assert rcli.main(['--platform', 'github', '--mode', 'COMMIT']) == 0

    assert capsys.readouterr().out == '## Other Changes\n- add feature\n- typo\n'
    with open(output_file) as f:
        outputs = f.read()
    assert 'fromTag=v1.0.0\n' in outputs
    assert 'failed=false\n' in outputs


def test_main_writes_outfile(monkeypatch, tmpdir, provider, no_logging_setup):
    outfile = os.path.join(tmpdir, 'CHANGELOG.md')
    monkeypatch.delenv('GITHUB_OUTPUT', raising=False)
    monkeypatch.delenv('GITEA_OUTPUT', raising=False)
    monkeypatch.setattr(
        rcli,
        'run',
        lambda inputs: rcli.generate_changelog(
            inputs,
            env={'GITHUB_WORKSPACE': str(tmpdir)},
            provider_factory=_factory(provider),
        ),
    )

    assert rcli.main(
        ['--platform', 'github', '--repo', 'o/r', '--mode', 'COMMIT', '--outfile', outfile],
    ) == 0

    with open(outfile) as f:
        assert f.read() == '## Other Changes\n- add feature\n- typo\n'


def test_main_fail_on_error(monkeypatch, capsys, no_logging_setup):
    monkeypatch.delenv('GITHUB_OUTPUT', raising=False)
    monkeypatch.delenv('GITEA_OUTPUT', raising=False)

    # invalid inputs: failOnError cannot be honoured
    assert rcli.main(['--mode', 'invalid']) == 0
    assert 'Invalid mode: invalid' in capsys.readouterr().out

    assert rcli.main(
        ['--platform', 'git', '--repo', 'o/r', '--mode', 'PR', '--no-fail-on-error'],
    ) == 0
    assert rcli.main(
        ['--platform', 'git', '--repo', 'o/r', '--mode', 'PR', '--fail-on-error'],
    ) == 1
    assert 'PR and HYBRID modes are not supported' in capsys.readouterr().out
