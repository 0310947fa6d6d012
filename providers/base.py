# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import abc
import datetime

import release_changelog.model as rcm


class Provider(abc.ABC):
    '''
    Read-only access to a repository hosted on a specific platform (GitHub, Gitea, or a plain
    local git-repository).

    Tags are always returned newest-first. Platforms lacking a concept (e.g. pull requests for
    local git-repositories) return empty results rather than raising.
    '''

    @abc.abstractmethod
    def tags(
        self,
        owner: str,
        repo: str,
        max_tags_to_fetch: int,
    ) -> list[rcm.TagInfo]:
        raise NotImplementedError

    @abc.abstractmethod
    def tag_annotation(self, tag_name: str) -> str | None:
        raise NotImplementedError

    @abc.abstractmethod
    def latest_release(self, owner: str, repo: str) -> str | None:
        '''
        returns the tag-name of the most recent published release, or None if there is none (or
        the platform has no concept of releases)
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def diff_remote(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
    ) -> rcm.DiffInfo:
        raise NotImplementedError

    @abc.abstractmethod
    def for_commit_hash(
        self,
        owner: str,
        repo: str,
        sha: str,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        raise NotImplementedError

    @abc.abstractmethod
    def between_dates(
        self,
        owner: str,
        repo: str,
        from_date: datetime.datetime,
        to_date: datetime.datetime,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        raise NotImplementedError

    @abc.abstractmethod
    def open_pull_requests(
        self,
        owner: str,
        repo: str,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        raise NotImplementedError

    @abc.abstractmethod
    def commits(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
    ) -> list[rcm.CommitInfo]:
        raise NotImplementedError
