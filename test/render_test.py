# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import datetime

import pytest

import release_changelog.config as rccfg
import release_changelog.model as rcm
import release_changelog.render as rcr


def _pull(number, title, labels=(), author='octocat'):
    return rcm.PullRequestInfo(
        number=number,
        title=title,
        author=author,
        labels=frozenset(labels),
    )


@pytest.fixture
def cfg():
    return rccfg.DEFAULT_CONFIGURATION


def test_render_default_configuration(cfg):
    entries = [
        _pull(3, 'add feature', labels=('feature',)),
        _pull(2, 'fix bug', labels=('bug',)),
        _pull(1, 'refactor', labels=()),
        _pull(0, 'direct commit'),
    ]

    assert rcr.render_changelog(entries, cfg) == (
        '## 🚀 Features\n'
        '- add feature\n'
        '   - PR: #3\n'
        '\n'
        '## 🐛 Bug Fixes\n'
        '- fix bug\n'
        '   - PR: #2\n'
        '\n'
        '## Other Changes\n'
        '- refactor\n'
        '   - PR: #1\n'
        '- direct commit'
    )


def test_render_empty(cfg):
    assert rcr.render_changelog([], cfg) == '- no changes'


def test_all_entries_ignored_renders_empty_template(cfg):
    cfg = dataclasses.replace(cfg, ignore_labels=frozenset(('skip',)))

    assert rcr.render_changelog([_pull(1, 'x', labels=('skip', 'feature'))], cfg) == \
        '- no changes'


def test_first_matching_category_wins(cfg):
    categorised = rcr.categorize([_pull(1, 'x', labels=('docs', 'bug'))], cfg)

    assert [e.number for e in categorised['## 🐛 Bug Fixes']] == [1]
    assert categorised['## 📝 Documentation'] == []


def test_categorisation_is_a_partition(cfg):
    cfg = dataclasses.replace(cfg, ignore_labels=frozenset(('ignore',)))
    entries = [
        _pull(1, 'a', labels=('feature',)),
        _pull(2, 'b', labels=('ignore', 'feature')),
        _pull(3, 'c', labels=('chore', 'fix')),
        _pull(4, 'd', labels=('unrelated',)),
        _pull(0, 'e'),
    ]

    categorised = rcr.categorize(entries, cfg)
    categorised_numbers = [e.number for es in categorised.values() for e in es]

    assert sorted(categorised_numbers) == [0, 1, 3, 4]
    assert list(categorised) == [c.title for c in cfg.categories] + [cfg.default_category]
    assert [e.number for e in categorised['## 🐛 Bug Fixes']] == [3]


def test_entry_order_is_retained(cfg):
    entries = [_pull(n, f'change {n}', labels=('feature',)) for n in (5, 9, 1)]

    categorised = rcr.categorize(entries, cfg)

    assert [e.number for e in categorised['## 🚀 Features']] == [5, 9, 1]


def test_placeholders(cfg):
    cfg = dataclasses.replace(
        cfg,
        pr_template='#{{NUMBER}}|#{{TITLE}}|#{{AUTHOR}}|#{{LABELS}}|#{{MERGED_AT}}|#{{URL}}',
    )
    entry = rcm.PullRequestInfo(
        number=7,
        title='title',
        author='alice',
        labels=frozenset(('zeta', 'alpha')),
        merged_at=datetime.datetime(2024, 5, 1, 12, tzinfo=datetime.timezone.utc),
        url='https://example.org/pull/7',
    )

    assert rcr.render_entry(entry, cfg) == \
        '7|title|alice|alpha, zeta|2024-05-01T12:00:00+00:00|https://example.org/pull/7'


def test_substitution_is_not_recursive():
    assert rcr.substitute(
        '#{{TITLE}} #{{UNKNOWN}}',
        {'TITLE': '#{{AUTHOR}}', 'AUTHOR': 'alice'},
    ) == '#{{AUTHOR}} #{{UNKNOWN}}'


def test_trim_values(cfg):
    entry = _pull(1, '  padded title \n', author=' bob ')
    untrimmed_cfg = dataclasses.replace(cfg, trim_values=False, pr_template='[#{{TITLE}}]')

    assert rcr.render_entry(entry, dataclasses.replace(untrimmed_cfg, trim_values=True)) == \
        '[padded title]'
    assert rcr.render_entry(entry, untrimmed_cfg) == '[  padded title \n]'


def test_template_and_tag_annotation(cfg):
    cfg = dataclasses.replace(cfg, template='#{{TAG_ANNOTATION}}\n\n#{{CHANGELOG}}')

    assert rcr.render_changelog([], cfg, tag_annotation='Release 1.0') == \
        'Release 1.0\n\n- no changes'
    assert rcr.render_changelog([], cfg) == '\n\n- no changes'


def test_prefix_and_postfix(cfg):
    assert rcr.render_changelog([], cfg, prefix='before', postfix='after') == \
        'before\n- no changes\nafter'
    assert rcr.render_changelog([], cfg, prefix='before') == 'before\n- no changes'
    assert rcr.render_changelog([], cfg, postfix='after') == '- no changes\nafter'


def test_rendering_is_deterministic(cfg):
    entries = [
        _pull(1, 'a', labels=('feature', 'docs', 'bug')),
        _pull(2, 'b', labels=('maintenance',)),
    ]

    assert rcr.render_changelog(entries, cfg) == rcr.render_changelog(list(entries), cfg)
