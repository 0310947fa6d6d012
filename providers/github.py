# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import datetime
import logging
import urllib.parse

import github3
import github3.exceptions as gh3e
import github3.pulls as gh3p
import github3.repos
import github3.repos.commit

import providers.base
import providers.git
import release_changelog.model as rcm
import version

logger = logging.getLogger(__name__)

GITHUB_API_URL = 'https://api.github.com'


def github_api(
    token: str | None=None,
    base_url: str | None=None,
    verify_ssl: bool=True,
) -> github3.GitHub:
    '''
    returns an initialised github-api instance. For github.com (or if no base_url is given),
    a `github3.GitHub` is returned, `github3.GitHubEnterprise` otherwise.
    '''
    host = urllib.parse.urlparse(base_url).hostname if base_url else None

    if not host or host in ('github.com', 'api.github.com'):
        api = github3.GitHub(token=token)
    else:
        # GITHUB_API_URL is `https://{host}/api/v3` for GHE; github3 expects the server-url
        server_url = base_url.rstrip('/').removesuffix('/api/v3')
        api = github3.GitHubEnterprise(
            url=server_url,
            token=token,
            verify=verify_ssl,
        )

    if not verify_ssl:
        api.session.verify = False

    return api


def _label_names(labels) -> frozenset[str]:
    return frozenset(
        label['name'] if isinstance(label, dict) else label.name
        for label in labels or ()
    )


def _parse_date(value: str | datetime.datetime | None) -> datetime.datetime | None:
    if not value or isinstance(value, datetime.datetime):
        return value
    return datetime.datetime.fromisoformat(value)


def to_pull_request_info(pull: gh3p.ShortPullRequest) -> rcm.PullRequestInfo:
    return rcm.PullRequestInfo(
        number=pull.number,
        title=pull.title or '',
        author=pull.user.login if pull.user else '',
        labels=_label_names(pull.labels),
        merged_at=pull.merged_at,
        body=pull.body,
        url=pull.html_url,
    )


def to_commit_info(commit: github3.repos.commit.ShortCommit) -> rcm.CommitInfo:
    git_commit = commit.commit
    git_author = git_commit.author or {}

    # prefer github-login; fallback to git-author (commits not associated to a github-user)
    if commit.author:
        author = commit.author.login
    else:
        author = git_author.get('name', '')

    return rcm.CommitInfo(
        sha=commit.sha,
        message=git_commit.message or '',
        author=author,
        date=_parse_date(git_author.get('date')),
    )


class GitHubProvider(providers.base.Provider):
    def __init__(
        self,
        github_api: github3.GitHub,
        repository_path: str | None=None,
    ):
        '''
        @param repository_path: optional local worktree; used to read tag-annotations
        '''
        if not github_api:
            raise ValueError('must pass github_api')

        self.github = github_api
        self.repository_path = repository_path
        self._repositories = {}

    def _repository(self, owner: str, repo: str) -> github3.repos.Repository:
        if (key := (owner, repo)) in self._repositories:
            return self._repositories[key]

        try:
            repository = self.github.repository(owner=owner, repository=repo)
        except gh3e.NotFoundError as nfe:
            raise RuntimeError(f'failed to retrieve repository {owner}/{repo}', nfe)

        self._repositories[key] = repository
        return repository

    def tags(
        self,
        owner: str,
        repo: str,
        max_tags_to_fetch: int,
    ) -> list[rcm.TagInfo]:
        repository = self._repository(owner, repo)

        tags = [
            rcm.TagInfo(name=tag.name, sha=tag.commit.sha)
            for tag in repository.tags(number=max_tags_to_fetch)
        ]

        # the tags-API does not guarantee any particular order; sort semver-tags greatest-first,
        # and keep other tags (in API-order) after those
        semver_tags = []
        other_tags = []
        for tag in tags:
            if (parsed := version.parse_to_semver(tag.name, invalid_semver_ok=True)):
                semver_tags.append((parsed, tag))
            else:
                other_tags.append(tag)

        semver_tags.sort(key=lambda parsed_and_tag: parsed_and_tag[0], reverse=True)

        return [tag for _, tag in semver_tags] + other_tags

    def tag_annotation(self, tag_name: str) -> str | None:
        if not self.repository_path:
            return None
        return providers.git.tag_annotation_from_worktree(
            repository_path=self.repository_path,
            tag_name=tag_name,
        )

    def latest_release(self, owner: str, repo: str) -> str | None:
        try:
            release = self._repository(owner, repo).latest_release()
        except gh3e.NotFoundError:
            logger.debug(f'no published release found for {owner}/{repo}')
            return None
        return release.tag_name

    def diff_remote(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
    ) -> rcm.DiffInfo:
        comparison = self._repository(owner, repo).compare_commits(base=base, head=head)
        files = comparison.files or []

        return rcm.DiffInfo(
            # compare-API returns commits oldest-first
            commits=tuple(to_commit_info(c) for c in reversed(comparison.commits)),
            changed_files=len(files),
            additions=sum(f.get('additions', 0) for f in files),
            deletions=sum(f.get('deletions', 0) for f in files),
            changes=sum(f.get('changes', 0) for f in files),
        )

    # pylint: disable=protected-access
    # noinspection PyProtectedMember
    def for_commit_hash(
        self,
        owner: str,
        repo: str,
        sha: str,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        url = self.github._build_url('repos', owner, repo, 'commits', sha, 'pulls')
        try:
            pulls = tuple(self.github._iter(max_pull_requests, url, gh3p.ShortPullRequest))
        except gh3e.UnprocessableEntity as e:
            logger.debug(f'cannot find any pull request related to commit {sha}: {e}')
            return []

        return [to_pull_request_info(pull) for pull in pulls if pull.merged_at]

    def between_dates(
        self,
        owner: str,
        repo: str,
        from_date: datetime.datetime,
        to_date: datetime.datetime,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        result = []
        for pull in self._repository(owner, repo).pull_requests(
            state='closed',
            sort='updated',
            direction='desc',
        ):
            if pull.updated_at and pull.updated_at < from_date:
                break # sorted by update-time; all remaining pulls are older
            if not pull.merged_at or not from_date <= pull.merged_at <= to_date:
                continue
            result.append(to_pull_request_info(pull))
            if len(result) >= max_pull_requests:
                break

        return result

    def open_pull_requests(
        self,
        owner: str,
        repo: str,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        return [
            to_pull_request_info(pull)
            for pull in self._repository(owner, repo).pull_requests(
                state='open',
                number=max_pull_requests,
            )
        ]

    def commits(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
    ) -> list[rcm.CommitInfo]:
        return list(self.diff_remote(owner, repo, base, head).commits)
