# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import os

import git
import pytest

import providers
import providers.git
import release_changelog.model as rcm
import release_changelog.tags as rct


def _commit(repo: git.Repo, filename: str, message: str, date: str):
    with open(os.path.join(repo.working_tree_dir, filename), 'w') as f:
        f.write(f'{date}\n')
    repo.index.add([filename])

    return repo.index.commit(
        message,
        author=git.Actor('Jane Doe', 'jane@example.org'),
        committer=git.Actor('Jane Doe', 'jane@example.org'),
        author_date=date,
        commit_date=date,
    )


@pytest.fixture
def git_repo(tmpdir):
    repo = git.Repo.init(tmpdir)
    # required for annotated tags
    with repo.config_writer() as cfg:
        cfg.set_value('user', 'name', 'Jane Doe')
        cfg.set_value('user', 'email', 'jane@example.org')

    first = _commit(repo, 'a.txt', 'initial commit', '2024-01-01T10:00:00')
    repo.create_tag('v1.0.0', ref=first)

    _commit(repo, 'b.txt', 'add b\n\nlonger description', '2024-02-01T10:00:00')
    second = _commit(repo, 'c.txt', 'add c', '2024-02-02T10:00:00')
    repo.create_tag('v1.1.0', ref=second)

    third = _commit(repo, 'a.txt', 'change a', '2024-03-01T10:00:00')
    repo.create_tag('v2.0.0', ref=third, message='Release 2.0.0\n\nmajor release\n')

    return repo


@pytest.fixture
def provider(git_repo):
    return providers.create_provider(
        platform=rcm.Platform.GIT,
        repository_path=git_repo.working_tree_dir,
    )


def test_create_provider(provider):
    assert isinstance(provider, providers.git.GitProvider)


def test_tags_are_ordered_newest_first(provider):
    tags = provider.tags('', 'repo', max_tags_to_fetch=10)

    assert [tag.name for tag in tags] == ['v2.0.0', 'v1.1.0', 'v1.0.0']
    assert all(tag.sha and tag.date for tag in tags)


def test_tags_created_within_same_second(tmpdir):
    repo = git.Repo.init(tmpdir)
    for name in ('v1.0.0', 'v2.0.0', 'v3.0.0'):
        commit = _commit(repo, f'{name}.txt', f'release {name}', '2024-01-01T10:00:00')
        repo.create_tag(name, ref=commit)

    provider = providers.git.GitProvider(repo)
    tags = provider.tags('', 'repo', max_tags_to_fetch=10)

    assert [tag.name for tag in tags] == ['v3.0.0', 'v2.0.0', 'v1.0.0']

    tag_range = rct.resolve_tags(tags)
    assert tag_range.to_tag.name == 'v3.0.0'
    assert tag_range.from_tag.name == 'v2.0.0'


def test_max_tags_to_fetch(provider):
    assert [tag.name for tag in provider.tags('', 'repo', max_tags_to_fetch=2)] == \
        ['v2.0.0', 'v1.1.0']


def test_tag_annotation(provider, git_repo):
    assert provider.tag_annotation('v2.0.0') == 'Release 2.0.0\n\nmajor release'
    assert provider.tag_annotation('v1.1.0') is None # lightweight tag
    assert provider.tag_annotation('no-such-tag') is None

    assert providers.git.tag_annotation_from_worktree(
        repository_path=git_repo.working_tree_dir,
        tag_name='v2.0.0',
    ) == 'Release 2.0.0\n\nmajor release'


def test_tag_annotation_from_non_repository(tmpdir):
    assert providers.git.tag_annotation_from_worktree(str(tmpdir), 'v1.0.0') is None


def test_commits(provider):
    commits = provider.commits('', 'repo', base='v1.0.0', head='v1.1.0')

    assert [commit.summary for commit in commits] == ['add c', 'add b']
    assert commits[1].message.startswith('add b\n\nlonger description')
    assert {commit.author for commit in commits} == {'Jane Doe'}


def test_diff_remote(provider):
    diff = provider.diff_remote('', 'repo', base='v1.0.0', head='v2.0.0')

    assert [commit.summary for commit in diff.commits] == ['change a', 'add c', 'add b']
    assert diff.changed_files == 3
    assert diff.additions == 3
    assert diff.deletions == 1
    assert diff.changes == 4


def test_no_pull_requests_or_releases(provider):
    assert provider.latest_release('', 'repo') is None
    assert provider.for_commit_hash('', 'repo', 'abc', 10) == []
    assert provider.open_pull_requests('', 'repo', 10) == []
