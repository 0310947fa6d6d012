# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
detection of hosting-platform, api-endpoint, auth-token and repository from CI-environment
(GitHub-Actions, Gitea-Actions) or local git-repository.
'''

import logging
import os
import urllib.parse

import git
import git.exc

import providers.gitea
import providers.github
import release_changelog.model as rcm

logger = logging.getLogger(__name__)


def repository_path(
    path: str | None=None,
    env: dict | None=None,
) -> str:
    if path:
        return path
    if env is None:
        env = os.environ

    return env.get('GITHUB_WORKSPACE') or env.get('GITEA_WORKSPACE') or os.getcwd()


def _is_local_git_repo(path: str) -> bool:
    if os.path.exists(os.path.join(path, '.git')):
        return True
    return os.path.exists(path) and path.rstrip('/').endswith('.git')


def _platform_from_env(env: dict) -> rcm.Platform | None:
    # gitea-runners also set (some) GITHUB_*-variables for compatibility; hence check gitea first
    if env.get('GITEA_ACTIONS') == 'true' or env.get('GITEA_SERVER_URL'):
        return rcm.Platform.GITEA
    if env.get('GITHUB_ACTIONS') == 'true' or env.get('GITHUB_SERVER_URL'):
        return rcm.Platform.GITHUB
    return None


def detect_platform(
    platform: rcm.Platform | str | None=None,
    repository_path: str | None=None,
    env: dict | None=None,
) -> rcm.Platform:
    '''
    determines the platform to use:

    - explicitly passed platform, if any
    - `git`, if there are no auth-tokens, and (relative) repository_path is a git-repository
    - platform detected from CI-environment
    - `github` (fallback)
    '''
    if platform:
        return rcm.Platform(platform)

    if env is None:
        env = os.environ

    path = repository_path or '.'
    has_no_tokens = not env.get('GITHUB_TOKEN') and not env.get('GITEA_TOKEN')
    if has_no_tokens and not os.path.isabs(path) and _is_local_git_repo(path):
        logger.info('detected local git-repository (no tokens available, relative path)')
        return rcm.Platform.GIT

    if (platform := _platform_from_env(env)):
        logger.info(f'detected {platform} from environment')
        return platform

    logger.info('no platform detected from environment - defaulting to github')
    return rcm.Platform.GITHUB


def api_base_url(
    platform: rcm.Platform,
    env: dict | None=None,
) -> str:
    if env is None:
        env = os.environ

    platform = rcm.Platform(platform)

    if platform is rcm.Platform.GITEA:
        return env.get('GITEA_SERVER_URL') or providers.gitea.GITEA_DEFAULT_URL
    if platform is rcm.Platform.GITHUB:
        return (
            env.get('GITHUB_API_URL')
            or env.get('GITHUB_SERVER_URL')
            or providers.github.GITHUB_API_URL
        )

    return '' # there is no api for plain git-repositories


def detect_token(
    platform: rcm.Platform,
    token: str | None=None,
    env: dict | None=None,
) -> str | None:
    if token:
        return token
    if env is None:
        env = os.environ

    platform = rcm.Platform(platform)
    if platform is rcm.Platform.GITEA:
        return env.get('GITEA_TOKEN') or env.get('GITHUB_TOKEN') or None
    if platform is rcm.Platform.GITHUB:
        return env.get('GITHUB_TOKEN') or None

    return None


def _split_owner_repo(value: str) -> tuple[str, str]:
    value = value.strip().strip('/')
    if value.endswith('.git'):
        value = value[:-len('.git')]

    parts = value.split('/')
    if len(parts) < 2 or not parts[-2] or not parts[-1]:
        raise ValueError(f'expected `owner/repo`, but got: {value}')

    return parts[-2], parts[-1]


def owner_repo_from_remote_url(url: str) -> tuple[str, str]:
    '''
    extracts owner and repository-name from a git-remote-url, e.g.:

    - https://github.com/owner/repo.git
    - git@github.com:owner/repo.git
    - ssh://git@gitea.example.org:2222/owner/repo
    '''
    if '://' in url:
        path = urllib.parse.urlparse(url).path
    elif ':' in url:
        # scp-like syntax
        path = url.split(':', 1)[1]
    else:
        path = url

    return _split_owner_repo(path)


def detect_owner_repo(
    repo: str | None=None,
    repository_path: str | None=None,
    env: dict | None=None,
    platform: rcm.Platform | None=None,
) -> tuple[str, str]:
    '''
    returns owner and repository-name, read from (in this order):

    - explicitly passed `owner/repo`
    - GITHUB_REPOSITORY / GITEA_REPOSITORY
    - url of `origin`-remote of local git-repository

    for plain git-repositories w/o `origin`-remote, owner is empty and repository-name is the
    name of the worktree-directory.
    '''
    if repo:
        return _split_owner_repo(repo)

    if env is None:
        env = os.environ

    if (env_repo := env.get('GITHUB_REPOSITORY') or env.get('GITEA_REPOSITORY')):
        return _split_owner_repo(env_repo)

    path = repository_path or os.getcwd()
    try:
        git_repo = git.Repo(path, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        raise ValueError(f'could not determine repository: {path=} is not a git-repository')

    try:
        remote_url = git_repo.remotes.origin.url
    except AttributeError:
        if platform and rcm.Platform(platform).is_local:
            worktree_name = os.path.basename(os.path.abspath(git_repo.working_tree_dir))
            logger.debug(f'no origin-remote - using {worktree_name=} as repository-name')
            return '', worktree_name
        raise ValueError(
            f'could not determine repository: pass `owner/repo`, or run from within a '
            f'git-repository with an `origin`-remote ({path=})'
        )

    logger.debug(f'determining repository from {remote_url=}')
    return owner_repo_from_remote_url(remote_url)
