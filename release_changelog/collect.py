# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import concurrent.futures
import logging

import release_changelog.model as rcm

logger = logging.getLogger(__name__)


def deduplicate(entries: list[rcm.PullRequestInfo]) -> list[rcm.PullRequestInfo]:
    '''
    removes pull requests with duplicate numbers (keeping first occurrence). Order is retained.
    Synthetic entries (created from commits) are never considered duplicates.
    '''
    seen_numbers = set()
    result = []

    for entry in entries:
        if entry.is_synthetic:
            result.append(entry)
            continue
        if entry.number in seen_numbers:
            continue
        seen_numbers.add(entry.number)
        result.append(entry)

    return result


def _lookup_pull_requests(
    provider,
    owner: str,
    repo: str,
    commits: tuple[rcm.CommitInfo, ...],
    max_pull_requests: int,
    max_workers: int,
) -> list[list[rcm.PullRequestInfo]]:
    '''
    returns associated pull requests for each of the given commits (in the same order as commits)
    '''
    def lookup(commit: rcm.CommitInfo):
        return provider.for_commit_hash(owner, repo, commit.sha, max_pull_requests)

    if max_workers <= 1 or len(commits) <= 1:
        return [lookup(commit) for commit in commits]

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        # executor.map yields results in order of submission
        return list(executor.map(lookup, commits))


def collect_pull_requests(
    provider,
    owner: str,
    repo: str,
    from_tag: rcm.TagInfo,
    to_tag: rcm.TagInfo,
    mode: rcm.Mode,
    include_open: bool=False,
    platform: rcm.Platform=rcm.Platform.GITHUB,
    max_pull_requests: int=200,
    max_workers: int=1,
) -> list[rcm.PullRequestInfo]:
    '''
    collects changelog-entries for the given tag-range from given `providers.Provider`.

    PR:     pull requests associated to commits in range (commits w/o pull request are omitted)
    COMMIT: one (synthetic) entry per commit in range
    HYBRID: one entry per commit in range; the commit's (first) associated pull request if there
            is one, a synthetic entry otherwise

    Order of entries is retained as returned by provider. Pull requests are deduplicated.

    @param include_open: also include open pull requests (PR and HYBRID-modes on hosting-platforms)
    @param max_workers: number of parallel commit-to-pull-request lookups
    '''
    mode = rcm.Mode(mode)
    platform = rcm.Platform(platform)
    base = from_tag.name
    head = to_tag.name

    if mode is rcm.Mode.COMMIT:
        commits = provider.commits(owner, repo, base, head)
        logger.info(f'found {len(commits)} commits in range {base}...{head}')
        entries = [rcm.PullRequestInfo.from_commit(commit) for commit in commits]

    elif mode in (rcm.Mode.PR, rcm.Mode.HYBRID):
        diff = provider.diff_remote(owner, repo, base, head)
        logger.info(f'found {len(diff.commits)} commits in range {base}...{head}')
        logger.debug(
            f'{diff.changed_files=} {diff.additions=} {diff.deletions=} {diff.changes=}'
        )

        commit_pulls = _lookup_pull_requests(
            provider=provider,
            owner=owner,
            repo=repo,
            commits=diff.commits,
            max_pull_requests=max_pull_requests,
            max_workers=max_workers,
        )

        entries = []
        for commit, pulls in zip(diff.commits, commit_pulls):
            if pulls:
                logger.debug(
                    f"{commit.sha:.7} -> {','.join(str(pull.number) for pull in pulls)}"
                )
            if mode is rcm.Mode.PR:
                entries.extend(pulls)
            elif pulls:
                # a commit may be associated to more than one pull request; first one wins
                entries.append(pulls[0])
            else:
                entries.append(rcm.PullRequestInfo.from_commit(commit))

        if include_open and not platform.is_local:
            open_pulls = provider.open_pull_requests(owner, repo, max_pull_requests)
            logger.info(f'adding {len(open_pulls)} open pull requests')
            entries.extend(open_pulls)

    else:
        raise NotImplementedError(mode)

    return deduplicate(entries)
