# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
Provider for Gitea (and Forgejo) instances, using Gitea's REST-API (v1).
'''

import datetime
import logging

import http_requests
import providers.base
import providers.git
import release_changelog.model as rcm

logger = logging.getLogger(__name__)

GITEA_DEFAULT_URL = 'https://gitea.com'


def _parse_date(value: str | None) -> datetime.datetime | None:
    if not value:
        return None
    return datetime.datetime.fromisoformat(value)


def to_pull_request_info(raw: dict) -> rcm.PullRequestInfo:
    return rcm.PullRequestInfo(
        number=raw['number'],
        title=raw.get('title') or '',
        author=(raw.get('user') or {}).get('login', ''),
        labels=frozenset(label['name'] for label in raw.get('labels') or ()),
        merged_at=_parse_date(raw.get('merged_at')),
        body=raw.get('body'),
        url=raw.get('html_url'),
    )


def to_commit_info(raw: dict) -> rcm.CommitInfo:
    git_commit = raw.get('commit') or {}
    git_author = git_commit.get('author') or {}

    if (user := raw.get('author')) and user.get('login'):
        author = user['login']
    else:
        author = git_author.get('name', '')

    return rcm.CommitInfo(
        sha=raw['sha'],
        message=git_commit.get('message') or '',
        author=author,
        date=_parse_date(git_author.get('date') or raw.get('created')),
    )


class GiteaProvider(providers.base.Provider):
    def __init__(
        self,
        base_url: str=GITEA_DEFAULT_URL,
        token: str | None=None,
        repository_path: str | None=None,
        verify_ssl: bool=True,
    ):
        self.request_builder = http_requests.AuthenticatedRequestBuilder(
            base_url=f'{base_url.rstrip("/")}/api/v1',
            auth_token=token,
            verify_ssl=verify_ssl,
        )
        self.repository_path = repository_path

    def _url(self, owner: str, repo: str, *parts) -> str:
        return self.request_builder.url('repos', owner, repo, *parts)

    def tags(
        self,
        owner: str,
        repo: str,
        max_tags_to_fetch: int,
    ) -> list[rcm.TagInfo]:
        # gitea returns tags ordered by creation-time, newest-first
        return [
            rcm.TagInfo(
                name=raw['name'],
                sha=raw['commit']['sha'],
                date=_parse_date(raw['commit'].get('created')),
            )
            for raw in self.request_builder.iter_pages(
                url=self._url(owner, repo, 'tags'),
                max_items=max_tags_to_fetch,
            )
        ]

    def tag_annotation(self, tag_name: str) -> str | None:
        if not self.repository_path:
            return None
        return providers.git.tag_annotation_from_worktree(
            repository_path=self.repository_path,
            tag_name=tag_name,
        )

    def latest_release(self, owner: str, repo: str) -> str | None:
        res = self.request_builder.get(
            self._url(owner, repo, 'releases', 'latest'),
            check_http_code=False,
        )
        if res.status_code == 404:
            logger.debug(f'no published release found for {owner}/{repo}')
            return None
        res.raise_for_status()

        return res.json().get('tag_name')

    def diff_remote(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
    ) -> rcm.DiffInfo:
        # `...` must not be url-quoted; hence build the last path-element separately
        url = f'{self._url(owner, repo, "compare")}/{base}...{head}'
        raw = self.request_builder.get(url).json()
        files = raw.get('files') or []

        return rcm.DiffInfo(
            commits=tuple(to_commit_info(c) for c in raw.get('commits') or ()),
            changed_files=len(files),
            additions=sum(f.get('additions', 0) for f in files),
            deletions=sum(f.get('deletions', 0) for f in files),
            changes=sum(f.get('changes', 0) for f in files),
        )

    def for_commit_hash(
        self,
        owner: str,
        repo: str,
        sha: str,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        '''
        gitea only knows (at most) one merged pull request per commit
        '''
        res = self.request_builder.get(
            self._url(owner, repo, 'commits', sha, 'pull'),
            check_http_code=False,
        )
        if res.status_code == 404:
            logger.debug(f'no pull request associated to commit {sha}')
            return []
        res.raise_for_status()

        return [to_pull_request_info(res.json())][:max_pull_requests]

    def between_dates(
        self,
        owner: str,
        repo: str,
        from_date: datetime.datetime,
        to_date: datetime.datetime,
        max_pull_requests: int,
    ) -> list[rcm.PullRequestInfo]:
        result = []
        for raw in self.request_builder.iter_pages(
            url=self._url(owner, repo, 'pulls'),
            params={'state': 'closed', 'sort': 'recentupdate'},
        ):
            pull = to_pull_request_info(raw)
            if not pull.merged_at or not from_date <= pull.merged_at <= to_date:
                continue
            result.append(pull)
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
            to_pull_request_info(raw)
            for raw in self.request_builder.iter_pages(
                url=self._url(owner, repo, 'pulls'),
                params={'state': 'open'},
                max_items=max_pull_requests,
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
