# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
Resolution of the tag-range (`from_tag`, `to_tag`) a changelog is created for.

Tags are expected to be ordered newest-first (as returned by providers); the tag at index 0 is
considered to be the latest one. `to_tag` is resolved first; `from_tag` is then resolved relative
to `to_tag`'s position.

to_tag tokens:
- absent, blank or `@current`: latest tag
- tag-name: the given tag (falls back to latest tag, if there is no such tag)

from_tag tokens:
- absent or blank: the tag preceding `to_tag`
- `@latest-release`: the tag of the latest published release (falls back to preceding tag)
- `-N` (N > 0): the tag N positions older than `to_tag`
- tag-name: the given tag (there is no fallback if there is no such tag)
'''

import collections.abc
import logging
import re

import release_changelog.model as rcm
import version

logger = logging.getLogger(__name__)

CURRENT = '@current'
LATEST_RELEASE = '@latest-release'

_offset_pattern = re.compile(r'^-([0-9]+)$')

LatestReleaseLookup = collections.abc.Callable[[], str | None]


class TagResolutionError(RuntimeError):
    pass


def _normalise(token: str | None) -> str | None:
    if token is None:
        return None
    return token.strip() or None


def _index_of(tags: list[rcm.TagInfo], name: str) -> int | None:
    for idx, tag in enumerate(tags):
        if tag.name == name:
            return idx
    return None


def parse_offset(token: str) -> int | None:
    '''
    returns N for tokens of the form `-N` (N being a strictly positive decimal number), or None for
    any other token (including `-0`, which is not a valid offset)
    '''
    if not (match := _offset_pattern.fullmatch(token)):
        return None
    if (offset := int(match.group(1))) <= 0:
        return None
    return offset


def resolve_to_tag(
    tags: list[rcm.TagInfo],
    to_token: str | None,
) -> int:
    '''
    returns the index of `to_tag` within tags
    '''
    if not tags:
        raise TagResolutionError('No tags found in repository')

    to_token = _normalise(to_token)
    if not to_token or to_token == CURRENT:
        logger.debug(f'using latest tag {tags[0].name} as toTag')
        return 0

    if (idx := _index_of(tags, to_token)) is not None:
        return idx

    logger.warning(f"tag '{to_token}' not found - falling back to latest tag '{tags[0].name}'")
    return 0


def _predecessor(
    tags: list[rcm.TagInfo],
    to_idx: int,
) -> rcm.TagInfo:
    if to_idx + 1 < len(tags):
        return tags[to_idx + 1]
    raise TagResolutionError('Could not determine fromTag')


def resolve_from_tag(
    tags: list[rcm.TagInfo],
    to_idx: int,
    from_token: str | None,
    latest_release_lookup: LatestReleaseLookup | None=None,
) -> rcm.TagInfo:
    to_tag = tags[to_idx]
    from_token = _normalise(from_token)

    if not from_token:
        return _predecessor(tags, to_idx)

    if from_token == LATEST_RELEASE:
        release_tag_name = latest_release_lookup() if latest_release_lookup else None

        if not release_tag_name:
            logger.info('no latest release found - falling back to previous tag')
        elif (release_idx := _index_of(tags, release_tag_name)) is None:
            logger.info(
                f"latest release tag '{release_tag_name}' not found in tags - "
                'falling back to previous tag'
            )
        elif release_tag_name == to_tag.name:
            logger.info(
                f"latest release tag '{release_tag_name}' equals toTag - "
                'falling back to previous tag'
            )
        else:
            return tags[release_idx]

        return _predecessor(tags, to_idx)

    if (offset := parse_offset(from_token)) is not None:
        if (from_idx := to_idx + offset) < len(tags):
            return tags[from_idx]
        raise TagResolutionError(f'Offset -{offset} is out of range')

    if (idx := _index_of(tags, from_token)) is not None:
        return tags[idx]

    raise TagResolutionError(f"Tag '{from_token}' not found")


def resolve_tags(
    tags: list[rcm.TagInfo],
    from_token: str | None=None,
    to_token: str | None=None,
    latest_release_lookup: LatestReleaseLookup | None=None,
) -> rcm.TagRange:
    '''
    resolves the given tokens into a tag-range. See module-docstring for supported tokens.

    @param tags: tags, ordered newest-first
    @param latest_release_lookup: callable returning the tag-name of the latest published release
        (only called for from-token `@latest-release`)
    @raises TagResolutionError: if no range can be determined
    '''
    to_idx = resolve_to_tag(tags, to_token)
    from_tag = resolve_from_tag(
        tags=tags,
        to_idx=to_idx,
        from_token=from_token,
        latest_release_lookup=latest_release_lookup,
    )

    return rcm.TagRange(
        from_tag=from_tag,
        to_tag=tags[to_idx],
    )


def filter_pre_releases(tags: list[rcm.TagInfo]) -> list[rcm.TagInfo]:
    '''
    removes tags denoting pre-releases (semver-versions w/ prerelease- or build-metadata). Tags
    that cannot be parsed as (semver) versions are kept.
    '''
    return [tag for tag in tags if not version.is_prerelease(tag.name)]


def fetch_and_resolve_tags(
    provider,
    owner: str,
    repo: str,
    from_token: str | None=None,
    to_token: str | None=None,
    max_tags_to_fetch: int=1000,
    ignore_pre_releases: bool=False,
) -> rcm.TagRange:
    '''
    retrieves tags from given `providers.Provider` and resolves the tag-range from them.
    '''
    tags = provider.tags(owner, repo, max_tags_to_fetch)
    logger.info(f'retrieved {len(tags)} tags for {owner}/{repo}')

    if ignore_pre_releases:
        tags = filter_pre_releases(tags)
        logger.debug(f'{len(tags)} tags remain after removing pre-releases')

    return resolve_tags(
        tags=tags,
        from_token=from_token,
        to_token=to_token,
        latest_release_lookup=lambda: provider.latest_release(owner, repo),
    )
