# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import datetime

import pytest

import providers.base
import release_changelog.model as rcm


class FakeProvider(providers.base.Provider):
    '''
    in-memory provider; records calls to allow for assertions on call-order
    '''
    def __init__(
        self,
        tags: list[rcm.TagInfo]=(),
        latest_release: str | None=None,
        commits: list[rcm.CommitInfo]=(),
        commit_pulls: dict[str, list[rcm.PullRequestInfo]]=None,
        open_pulls: list[rcm.PullRequestInfo]=(),
        annotations: dict[str, str]=None,
    ):
        self._tags = list(tags)
        self._latest_release = latest_release
        self._commits = tuple(commits)
        self._commit_pulls = commit_pulls or {}
        self._open_pulls = list(open_pulls)
        self._annotations = annotations or {}
        self.calls = []

    def tags(self, owner, repo, max_tags_to_fetch):
        self.calls.append(('tags', owner, repo, max_tags_to_fetch))
        return self._tags[:max_tags_to_fetch]

    def tag_annotation(self, tag_name):
        self.calls.append(('tag_annotation', tag_name))
        return self._annotations.get(tag_name)

    def latest_release(self, owner, repo):
        self.calls.append(('latest_release', owner, repo))
        return self._latest_release

    def diff_remote(self, owner, repo, base, head):
        self.calls.append(('diff_remote', owner, repo, base, head))
        return rcm.DiffInfo(commits=self._commits)

    def for_commit_hash(self, owner, repo, sha, max_pull_requests):
        self.calls.append(('for_commit_hash', sha))
        return list(self._commit_pulls.get(sha, ()))

    def between_dates(self, owner, repo, from_date, to_date, max_pull_requests):
        self.calls.append(('between_dates', from_date, to_date))
        return []

    def open_pull_requests(self, owner, repo, max_pull_requests):
        self.calls.append(('open_pull_requests', owner, repo))
        return list(self._open_pulls)

    def commits(self, owner, repo, base, head):
        self.calls.append(('commits', owner, repo, base, head))
        return list(self._commits)


def tag(name: str) -> rcm.TagInfo:
    return rcm.TagInfo(name=name, sha=f'sha-{name}')


def commit(
    sha: str,
    message: str,
    author: str='octocat',
) -> rcm.CommitInfo:
    return rcm.CommitInfo(
        sha=sha,
        message=message,
        author=author,
        date=datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc),
    )


def pull(
    number: int,
    title: str='',
    author: str='octocat',
    labels=(),
) -> rcm.PullRequestInfo:
    return rcm.PullRequestInfo(
        number=number,
        title=title or f'pull request {number}',
        author=author,
        labels=frozenset(labels),
    )


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def make_tag():
    return tag


@pytest.fixture
def make_commit():
    return commit


@pytest.fixture
def make_pull():
    return pull
