# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import datetime
import enum


class Mode(enum.StrEnum):
    PR = 'PR'
    COMMIT = 'COMMIT'
    HYBRID = 'HYBRID'


class Platform(enum.StrEnum):
    GITHUB = 'github'
    GITEA = 'gitea'
    LOCAL = 'local'
    GIT = 'git'

    @property
    def is_local(self) -> bool:
        '''
        `local` and `git` both denote a plain git-repository without a hosting-platform API
        (i.e. without pull requests or releases)
        '''
        return self in (Platform.LOCAL, Platform.GIT)


@dataclasses.dataclass(frozen=True, kw_only=True)
class TagInfo:
    name: str
    sha: str
    date: datetime.datetime | None = None


@dataclasses.dataclass(frozen=True, kw_only=True)
class CommitInfo:
    sha: str
    message: str
    author: str
    date: datetime.datetime | None = None

    @property
    def summary(self) -> str:
        '''
        first line of commit-message
        '''
        if not self.message:
            return ''
        return self.message.splitlines()[0]


@dataclasses.dataclass(frozen=True, kw_only=True)
class DiffInfo:
    commits: tuple[CommitInfo, ...] = ()
    changed_files: int = 0
    additions: int = 0
    deletions: int = 0
    changes: int = 0


@dataclasses.dataclass(frozen=True, kw_only=True)
class PullRequestInfo:
    '''
    a change-entry to be rendered into a changelog.

    entries are either created from actual pull requests, or synthesised from commits (in which
    case `number` is 0).
    '''
    number: int
    title: str
    author: str
    labels: frozenset[str] = frozenset()
    merged_at: datetime.datetime | None = None
    body: str | None = None
    url: str | None = None

    @property
    def is_synthetic(self) -> bool:
        return self.number <= 0

    @staticmethod
    def from_commit(commit: CommitInfo) -> 'PullRequestInfo':
        return PullRequestInfo(
            number=0,
            title=commit.summary,
            author=commit.author,
            merged_at=commit.date,
            body=commit.message,
        )


@dataclasses.dataclass(frozen=True)
class TagRange:
    from_tag: TagInfo
    to_tag: TagInfo


@dataclasses.dataclass(frozen=True)
class Category:
    title: str
    labels: frozenset[str] = frozenset()

    def matches(self, labels: frozenset[str]) -> bool:
        return not self.labels.isdisjoint(labels)


@dataclasses.dataclass(frozen=True, kw_only=True)
class Configuration:
    template: str
    pr_template: str
    commit_template: str
    empty_template: str
    categories: tuple[Category, ...]
    ignore_labels: frozenset[str]
    trim_values: bool
    default_category: str


def contributors(entries: list[PullRequestInfo]) -> list[str]:
    '''
    returns unique authors of the given entries, in order of first occurrence
    '''
    seen = set()
    authors = []
    for entry in entries:
        if entry.author in seen:
            continue
        seen.add(entry.author)
        authors.append(entry.author)
    return authors


def pull_request_numbers(entries: list[PullRequestInfo]) -> list[int]:
    return [entry.number for entry in entries if not entry.is_synthetic]
