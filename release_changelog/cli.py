# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import collections.abc
import dataclasses
import logging
import os
import re
import sys
import uuid

import urllib3

import ci.log
import providers
import release_changelog.collect as rcc
import release_changelog.config as rccfg
import release_changelog.inputs as rci
import release_changelog.model as rcm
import release_changelog.platform as rcp
import release_changelog.render as rcr
import release_changelog.tags as rct

logger = logging.getLogger(__name__)

# number of parallel commit-to-pull-request lookups against hosting-platforms
COMMIT_LOOKUP_WORKERS = 4

_no_tags_pattern = re.compile('no tags found in repository', re.IGNORECASE)

ProviderFactory = collections.abc.Callable[..., providers.Provider]


@dataclasses.dataclass(frozen=True, kw_only=True)
class ChangelogResult:
    changelog: str
    owner: str = ''
    repo: str = ''
    from_tag: str = ''
    to_tag: str = ''
    contributors: tuple[str, ...] = ()
    pull_requests: tuple[int, ...] = ()
    tag_annotation: str | None = None
    failed: bool = False
    error: str | None = None

    def outputs(self) -> dict[str, str]:
        outputs = {
            'changelog': self.changelog,
            'owner': self.owner,
            'repo': self.repo,
            'fromTag': self.from_tag,
            'toTag': self.to_tag,
            'contributors': ', '.join(self.contributors),
            'pullRequests': ', '.join(str(number) for number in self.pull_requests),
            'failed': 'true' if self.failed else 'false',
        }
        if self.tag_annotation:
            outputs['tagAnnotation'] = self.tag_annotation

        return outputs


def generate_changelog(
    inputs: rci.ParsedInputs,
    env: dict | None=None,
    provider_factory: ProviderFactory=providers.create_provider,
) -> ChangelogResult:
    '''
    runs the whole pipeline (tag-resolution, collection, rendering). Errors are propagated.
    '''
    if env is None:
        env = os.environ

    repository_path = rcp.repository_path(inputs.repository_path, env=env)

    platform = rcp.detect_platform(
        platform=inputs.platform,
        repository_path=repository_path,
        env=env,
    )
    base_url = rcp.api_base_url(platform, env=env)
    token = rcp.detect_token(platform, token=inputs.token, env=env)
    owner, repo = rcp.detect_owner_repo(
        repo=inputs.repo,
        repository_path=repository_path,
        env=env,
        platform=platform,
    )

    logger.info(f'processing {owner}/{repo} on {platform}')
    logger.debug(f'{platform=} {base_url=} {owner=} {repo=} {repository_path=}')

    rci.ensure_mode_supported(platform, inputs.mode)

    if inputs.skip_certificate_check:
        logger.warning(
            'TLS certificate verification is disabled. This is a security risk and should '
            'only be used with trusted endpoints.'
        )
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    provider = provider_factory(
        platform=platform,
        token=token,
        base_url=base_url,
        repository_path=repository_path,
        verify_ssl=not inputs.skip_certificate_check,
    )

    config = rccfg.resolve_configuration(
        repository_path=repository_path,
        config_json=inputs.configuration_json,
        config_file=inputs.configuration,
    )

    tag_range = rct.fetch_and_resolve_tags(
        provider=provider,
        owner=owner,
        repo=repo,
        from_token=inputs.from_tag,
        to_token=inputs.to_tag,
        max_tags_to_fetch=inputs.max_tags_to_fetch,
        ignore_pre_releases=inputs.ignore_pre_releases,
    )
    from_tag = tag_range.from_tag
    to_tag = tag_range.to_tag
    logger.info(f'comparing {from_tag.name}...{to_tag.name}')

    tag_annotation = None
    if inputs.fetch_tag_annotations:
        if (tag_annotation := provider.tag_annotation(to_tag.name)):
            logger.info(f'retrieved tag-annotation for {to_tag.name}')
            logger.debug(f'tag-annotation: {tag_annotation[:100]}')

    entries = rcc.collect_pull_requests(
        provider=provider,
        owner=owner,
        repo=repo,
        from_tag=from_tag,
        to_tag=to_tag,
        mode=inputs.mode,
        include_open=inputs.include_open,
        platform=platform,
        max_workers=1 if platform.is_local else COMMIT_LOOKUP_WORKERS,
    )
    logger.info(f'found {len(entries)} items to include in changelog ({inputs.mode=})')

    changelog = rcr.render_changelog(
        entries=entries,
        config=config,
        tag_annotation=tag_annotation,
        prefix=inputs.prefix_message,
        postfix=inputs.postfix_message,
    )

    return ChangelogResult(
        changelog=changelog,
        owner=owner,
        repo=repo,
        from_tag=from_tag.name,
        to_tag=to_tag.name,
        contributors=tuple(rcm.contributors(entries)),
        pull_requests=tuple(rcm.pull_request_numbers(entries)),
        tag_annotation=tag_annotation,
    )


def fallback_changelog(
    error_message: str,
    config: rcm.Configuration,
    prefix: str | None=None,
    postfix: str | None=None,
) -> str:
    '''
    renders a changelog describing the given error, so that consumers never receive an empty
    changelog
    '''
    if _no_tags_pattern.search(error_message):
        fallback = f'⚠️ {error_message}\n\n{config.empty_template}'
    else:
        fallback = f'⚠️ Changelog generation failed: {error_message}'

    return rcr.render_changelog(
        entries=[],
        config=dataclasses.replace(config, empty_template=fallback),
        tag_annotation=None,
        prefix=prefix,
        postfix=postfix,
    )


def failed_result(
    error: Exception,
    inputs: rci.ParsedInputs | None=None,
    env: dict | None=None,
) -> ChangelogResult:
    error_message = str(error)

    if inputs:
        repository_path = rcp.repository_path(inputs.repository_path, env=env)
        config = rccfg.resolve_configuration(
            repository_path=repository_path,
            config_json=inputs.configuration_json,
            config_file=inputs.configuration,
        )
        prefix = inputs.prefix_message
        postfix = inputs.postfix_message
    else:
        config = rccfg.DEFAULT_CONFIGURATION
        prefix = None
        postfix = None

    return ChangelogResult(
        changelog=fallback_changelog(
            error_message=error_message,
            config=config,
            prefix=prefix,
            postfix=postfix,
        ),
        failed=True,
        error=error_message,
    )


def run(
    inputs: rci.ParsedInputs,
    env: dict | None=None,
    provider_factory: ProviderFactory=providers.create_provider,
) -> ChangelogResult:
    '''
    like `generate_changelog`, but converts errors into a (failed) result w/ fallback-changelog
    '''
    try:
        return generate_changelog(
            inputs=inputs,
            env=env,
            provider_factory=provider_factory,
        )
    except Exception as e:
        logger.debug('changelog-generation failed', exc_info=True)
        return failed_result(error=e, inputs=inputs, env=env)


def format_output(name: str, value: str) -> str:
    if '\n' not in value:
        return f'{name}={value}\n'

    delimiter = f'ghadelimiter_{uuid.uuid4()}'
    return f'{name}<<{delimiter}\n{value}\n{delimiter}\n'


def write_outputs(
    outputs: dict[str, str],
    env: dict | None=None,
):
    '''
    writes outputs to file denoted by GITHUB_OUTPUT (or GITEA_OUTPUT), if set
    '''
    if env is None:
        env = os.environ

    if not (path := env.get('GITHUB_OUTPUT') or env.get('GITEA_OUTPUT')):
        logger.debug('neither GITHUB_OUTPUT nor GITEA_OUTPUT set - not writing outputs')
        return

    with open(path, 'a') as f:
        for name, value in outputs.items():
            f.write(format_output(name, value))


def _write_changelog(changelog: str, outfile: str):
    if outfile == '-':
        print(changelog)
        return

    with open(outfile, 'w') as f:
        f.write(changelog)
        if not changelog.endswith('\n'):
            f.write('\n')


def main(argv: list[str] | None=None) -> int:
    inputs = None
    try:
        inputs = rci.parse_inputs(argv)
    except rci.InputValidationError as e:
        ci.log.configure_default_logging()
        result = failed_result(error=e)
    else:
        ci.log.configure_default_logging(
            stdout_level=logging.DEBUG if inputs.verbose else logging.INFO,
        )
        result = run(inputs)

    write_outputs(result.outputs())
    _write_changelog(result.changelog, outfile=inputs.outfile if inputs else '-')

    if not result.failed:
        logger.info('changelog generated successfully')
        return 0

    logger.error(result.error)
    if inputs and inputs.fail_on_error:
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
