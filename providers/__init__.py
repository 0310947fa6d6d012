# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import logging

import providers.base
import providers.git
import providers.gitea
import providers.github
import release_changelog.model as rcm

logger = logging.getLogger(__name__)

Provider = providers.base.Provider


def create_provider(
    platform: rcm.Platform,
    token: str | None=None,
    base_url: str | None=None,
    repository_path: str | None=None,
    verify_ssl: bool=True,
) -> Provider:
    platform = rcm.Platform(platform)
    logger.debug(f'creating provider for {platform=} {base_url=}')

    if platform is rcm.Platform.GITHUB:
        return providers.github.GitHubProvider(
            github_api=providers.github.github_api(
                token=token,
                base_url=base_url,
                verify_ssl=verify_ssl,
            ),
            repository_path=repository_path,
        )

    if platform is rcm.Platform.GITEA:
        return providers.gitea.GiteaProvider(
            base_url=base_url or providers.gitea.GITEA_DEFAULT_URL,
            token=token,
            repository_path=repository_path,
            verify_ssl=verify_ssl,
        )

    if platform.is_local:
        return providers.git.GitProvider(repo=repository_path or '.')

    raise NotImplementedError(platform)
