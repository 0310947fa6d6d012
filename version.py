# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging
import semver

logger = logging.getLogger(__name__)

Version = semver.VersionInfo | str


def parse_to_semver(
    version: Version,
    invalid_semver_ok: bool=False,
) -> semver.VersionInfo | None:
    '''
    parses the given version (typically a tag-name) into a semver.VersionInfo object.

    Different from strict semver, the given version is preprocessed, if required, to
    convert the version into a valid semver version, if possible.

    The following preprocessings are done:

    - strip away `v` prefix
    - append patch-level `.0` for two-digit versions
    - rm leading zeroes

    @param invalid_semver_ok: if set, return None instead of raising for invalid versions
    '''
    if isinstance(version, semver.VersionInfo):
        return version
    if version is None:
        raise ValueError('version must not be None')

    try:
        semver_version_info, _ = _parse_to_semver_and_prefix(str(version))
    except ValueError:
        if invalid_semver_ok:
            return None

        raise

    return semver_version_info


def _parse_to_semver_and_prefix(version: str) -> tuple[semver.VersionInfo, str | None]:
    def raise_invalid():
        raise ValueError(f'not a valid (semver) version: `{version}`')

    if not version:
        raise_invalid()

    semver_version = version
    prefix = None

    # strip leading `v`
    if version[0] in ('v', 'V'):
        semver_version = version[1:]
        prefix = version[0]

    try:
        return semver.VersionInfo.parse(semver_version), prefix
    except ValueError:
        pass # try extending `.0` as patch-level

    if '-' in semver_version:
        sep = '-'
    else:
        sep = '+'

    numeric, sep, suffix = semver_version.partition(sep)
    if numeric.count('.') == 1:
        numeric += '.0'

    try:
        return semver.VersionInfo.parse(numeric + sep + suffix), prefix
    except ValueError:
        pass # last try: strip leading zeroes

    try:
        major, minor, patch = (str(int(part)) for part in numeric.split('.'))
    except ValueError:
        raise_invalid()

    try:
        return semver.VersionInfo.parse(f'{major}.{minor}.{patch}{sep}{suffix}'), prefix
    except ValueError:
        # re-raise with original version str
        raise_invalid()


def is_final(version: Version) -> bool:
    version = parse_to_semver(version=version)
    return not version.build and not version.prerelease


def is_prerelease(version: Version) -> bool:
    '''
    returns whether the given version has a prerelease- or build-suffix. Versions that cannot be
    parsed are not considered to be prereleases.
    '''
    if not (parsed := parse_to_semver(version, invalid_semver_ok=True)):
        logger.debug(f'{version=} is not a valid semver-version')
        return False
    return not is_final(parsed)
