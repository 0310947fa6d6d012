# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
Provider for plain (local) git-repositories. As there is no hosting-platform, there are neither
pull requests nor releases; only COMMIT-mode is supported for this provider.
'''

import datetime
import logging

import git
import git.exc
import semver

import providers.base
import release_changelog.model as rcm
import version

logger = logging.getLogger(__name__)

_no_version = semver.VersionInfo(0)


def _tag_order_key(tag: rcm.TagInfo) -> tuple:
    '''
    orders by date (which has a resolution of one second), then by version, then by name
    '''
    if (parsed := version.parse_to_semver(tag.name, invalid_semver_ok=True)) is None:
        return (tag.date, False, _no_version, tag.name)
    return (tag.date, True, parsed, tag.name)


def _open_repo(repo: str | git.Repo) -> git.Repo:
    if repo is None:
        raise ValueError(repo)
    if isinstance(repo, str):
        repo = git.Repo(repo, search_parent_directories=True)
    if not isinstance(repo, git.Repo):
        raise ValueError(repo)
    return repo


def _tag_date(tag: git.TagReference) -> datetime.datetime:
    if (tag_object := tag.tag):
        # annotated tag
        return datetime.datetime.fromtimestamp(
            tag_object.tagged_date,
            tz=datetime.timezone.utc,
        )
    return tag.commit.committed_datetime


def _tag_annotation(repo: git.Repo, tag_name: str) -> str | None:
    for tag in repo.tags:
        if tag.name != tag_name:
            continue
        if not tag.tag:
            logger.debug(f'{tag_name=} is a lightweight tag (no annotation)')
            return None
        return tag.tag.message.strip() or None

    logger.debug(f'{tag_name=} not found in {repo.working_tree_dir}')
    return None


def tag_annotation_from_worktree(
    repository_path: str,
    tag_name: str,
) -> str | None:
    '''
    reads the annotation-message of the given tag from a local git-repository. Returns None if
    the tag does not exist, is not annotated, or if repository_path is not a git-repository.
    '''
    try:
        repo = _open_repo(repository_path)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        logger.debug(f'{repository_path=} is not a git-repository - cannot read tag-annotation')
        return None

    return _tag_annotation(repo, tag_name)


def to_commit_info(commit: git.Commit) -> rcm.CommitInfo:
    return rcm.CommitInfo(
        sha=commit.hexsha,
        message=commit.message,
        author=commit.author.name or '',
        date=commit.committed_datetime,
    )


class GitProvider(providers.base.Provider):
    def __init__(
        self,
        repo: str | git.Repo,
    ):
        self.repo = _open_repo(repo)

    def tags(
        self,
        owner: str,
        repo: str,
        max_tags_to_fetch: int,
    ) -> list[rcm.TagInfo]:
        tags = [
            rcm.TagInfo(
                name=tag.name,
                sha=tag.commit.hexsha,
                date=_tag_date(tag),
            )
            for tag in self.repo.tags
        ]
        tags.sort(key=_tag_order_key, reverse=True)

        return tags[:max_tags_to_fetch]

    def tag_annotation(self, tag_name: str) -> str | None:
        return _tag_annotation(self.repo, tag_name)

    def latest_release(self, owner: str, repo: str) -> str | None:
        return None # there are no releases for plain git-repositories

    def _iter_commits(self, base: str, head: str):
        return self.repo.iter_commits(f'{base}..{head}')

    def diff_remote(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
    ) -> rcm.DiffInfo:
        changed_files = 0
        additions = 0
        deletions = 0

        # numstat-output: `<additions>\t<deletions>\t<path>` (`-` for binary files)
        for line in self.repo.git.diff('--numstat', base, head).splitlines():
            if not line.strip():
                continue
            added, deleted, _ = line.split('\t', 2)
            changed_files += 1
            additions += int(added) if added.isdigit() else 0
            deletions += int(deleted) if deleted.isdigit() else 0

        return rcm.DiffInfo(
            commits=tuple(to_commit_info(c) for c in self._iter_commits(base, head)),
            changed_files=changed_files,
            additions=additions,
            deletions=deletions,
            changes=additions + deletions,
        )

    def for_commit_hash(
        self,
        owner: str,
        repo: str,
        sha: str,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        return []

    def between_dates(
        self,
        owner: str,
        repo: str,
        from_date: datetime.datetime,
        to_date: datetime.datetime,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        return []

    def open_pull_requests(
        self,
        owner: str,
        repo: str,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        return []

    def commits(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
    ) -> list[rcm.CommitInfo]:
        return [to_commit_info(commit) for commit in self._iter_commits(base, head)]
