# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
parsing of run-inputs.

inputs may be passed as command-line arguments, or (as done by GitHub-Actions and Gitea-Actions)
as environment variables of the form `INPUT_<NAME>` (e.g. `INPUT_FROMTAG`). Command-line
arguments take precedence.
'''

import argparse
import dataclasses
import os
import re

import ci.log
import release_changelog.model as rcm


class InputValidationError(ValueError):
    pass


@dataclasses.dataclass(frozen=True, kw_only=True)
class ParsedInputs:
    platform: rcm.Platform | None = None
    token: str | None = None
    repo: str | None = None
    from_tag: str | None = None
    to_tag: str | None = None
    mode: rcm.Mode = rcm.Mode.PR
    configuration_json: str | None = None
    configuration: str | None = None
    ignore_pre_releases: bool = False
    fetch_tag_annotations: bool = False
    prefix_message: str | None = None
    postfix_message: str | None = None
    include_open: bool = False
    fail_on_error: bool = False
    max_tags_to_fetch: int = 1000
    skip_certificate_check: bool = False
    verbose: bool = False
    repository_path: str | None = None
    outfile: str = '-'


def normalize_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_mode(value: str | None) -> rcm.Mode:
    if not (value := normalize_optional(value)):
        return rcm.Mode.PR

    try:
        return rcm.Mode(value.upper())
    except ValueError:
        raise InputValidationError(f'Invalid mode: {value}. Must be PR, COMMIT, or HYBRID.')


def parse_platform(value: str | None) -> rcm.Platform | None:
    if not (value := normalize_optional(value)):
        return None

    try:
        return rcm.Platform(value.lower())
    except ValueError:
        raise InputValidationError(
            f'Invalid platform: {value}. Must be github, gitea, local, or git.'
        )


_leading_int_pattern = re.compile(r'^[+-]?[0-9]+')


def parse_max_tags(value: str | int | None) -> int:
    '''
    parses maxTagsToFetch; leading digits are honoured (`50abc` -> 50), absent values default to
    1000. Raises `InputValidationError` unless value is a positive number.
    '''
    if isinstance(value, int):
        max_tags = value
    elif not (value := normalize_optional(value)):
        return 1000
    elif not (match := _leading_int_pattern.match(value)):
        raise InputValidationError(f'Invalid maxTagsToFetch: {value}. Must be a number.')
    else:
        max_tags = int(match.group(0))

    if max_tags <= 0:
        raise InputValidationError(
            f'Invalid maxTagsToFetch: {value}. Must be a positive number.'
        )

    return max_tags


def parse_bool(value: str | bool | None, name: str='') -> bool:
    if isinstance(value, bool):
        return value
    if not (value := normalize_optional(value)):
        return False

    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False

    raise InputValidationError(
        f'Invalid value for {name}: {value}. Must be one of: true, True, TRUE, false, False, FALSE'
    )


def ensure_mode_supported(platform: rcm.Platform, mode: rcm.Mode):
    '''
    there are no pull requests for plain git-repositories; hence only COMMIT-mode is supported
    '''
    platform = rcm.Platform(platform)
    if platform.is_local and rcm.Mode(mode) is not rcm.Mode.COMMIT:
        raise InputValidationError(
            f'PR and HYBRID modes are not supported for {platform} platform. '
            'Use COMMIT mode instead.'
        )


def _input_env_name(name: str) -> str:
    return f'INPUT_{name.replace(" ", "_").upper()}'


# (attribute-name, input-name, is-flag, help)
_inputs = (
    ('platform', 'platform', False, 'one of github, gitea, local, git (auto-detected by default)'),
    ('token', 'token', False, 'auth-token (default: GITHUB_TOKEN / GITEA_TOKEN)'),
    ('repo', 'repo', False, 'repository as `owner/repo` (derived from environment by default)'),
    ('from_tag', 'fromTag', False, 'tag-name, `-N` (offset to toTag) or `@latest-release`'),
    ('to_tag', 'toTag', False, 'tag-name or `@current` (default: latest tag)'),
    ('mode', 'mode', False, 'one of PR, COMMIT, HYBRID (default: PR)'),
    ('configuration_json', 'configurationJson', False, 'changelog-configuration as JSON'),
    ('configuration', 'configuration', False, 'path to configuration-file (in repository)'),
    ('ignore_pre_releases', 'ignorePreReleases', True, 'ignore pre-release tags'),
    ('fetch_tag_annotations', 'fetchTagAnnotations', True, 'read annotation of toTag'),
    ('prefix_message', 'prefixMessage', False, 'text to prepend to changelog'),
    ('postfix_message', 'postfixMessage', False, 'text to append to changelog'),
    ('include_open', 'includeOpen', True, 'also include open pull requests'),
    ('fail_on_error', 'failOnError', True, 'exit w/ non-zero exit-code upon errors'),
    ('max_tags_to_fetch', 'maxTagsToFetch', False, 'max number of tags to retrieve'),
    ('skip_certificate_check', 'skipCertificateCheck', True, 'disable TLS-verification'),
    ('verbose', 'verbose', True, 'enable debug-logging'),
)


def argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='creates a changelog from pull requests and commits between two tags',
    )

    for attr_name, _, is_flag, help_text in _inputs:
        option = f'--{attr_name.replace("_", "-")}'
        if is_flag:
            parser.add_argument(
                option,
                action=argparse.BooleanOptionalAction,
                default=None,
                help=help_text,
            )
        else:
            parser.add_argument(option, default=None, help=help_text)

    parser.add_argument(
        '--repository-path',
        default=None,
        help='path to repository-worktree (default: GITHUB_WORKSPACE, GITEA_WORKSPACE or cwd)',
    )
    parser.add_argument(
        '--outfile',
        default='-',
        help='file to write changelog to (`-` for stdout, which is the default)',
    )

    return parser


def parse_inputs(
    argv: list[str] | None=None,
    env: dict | None=None,
) -> ParsedInputs:
    '''
    parses inputs from given command-line arguments, falling back to `INPUT_<NAME>`-environment
    variables. Raises `InputValidationError` for invalid values.
    '''
    if env is None:
        env = os.environ

    parsed = argument_parser().parse_args(argv)

    raw = {}
    for attr_name, input_name, _, _ in _inputs:
        if (value := getattr(parsed, attr_name)) is None:
            value = env.get(_input_env_name(input_name))
        raw[attr_name] = value

    return ParsedInputs(
        platform=parse_platform(raw['platform']),
        token=normalize_optional(raw['token']),
        repo=normalize_optional(raw['repo']),
        from_tag=normalize_optional(raw['from_tag']),
        to_tag=normalize_optional(raw['to_tag']),
        mode=parse_mode(raw['mode']),
        configuration_json=normalize_optional(raw['configuration_json']),
        configuration=normalize_optional(raw['configuration']),
        ignore_pre_releases=parse_bool(raw['ignore_pre_releases'], 'ignorePreReleases'),
        fetch_tag_annotations=parse_bool(raw['fetch_tag_annotations'], 'fetchTagAnnotations'),
        prefix_message=normalize_optional(raw['prefix_message']),
        postfix_message=normalize_optional(raw['postfix_message']),
        include_open=parse_bool(raw['include_open'], 'includeOpen'),
        fail_on_error=parse_bool(raw['fail_on_error'], 'failOnError'),
        max_tags_to_fetch=parse_max_tags(raw['max_tags_to_fetch']),
        skip_certificate_check=parse_bool(raw['skip_certificate_check'], 'skipCertificateCheck'),
        verbose=parse_bool(raw['verbose'], 'verbose') or ci.log.debug_enabled_from_env(env),
        repository_path=normalize_optional(parsed.repository_path),
        outfile=parsed.outfile,
    )
