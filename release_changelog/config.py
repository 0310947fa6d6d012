# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
changelog-configuration (templates, categories, ignored labels).

Configuration is read from a JSON document (passed inline, or as path to a file). YAML-files
(`.yaml` / `.yml`) are accepted as well. Fields absent from user-supplied configuration fall back
to the defaults individually.
'''

import dataclasses
import json
import logging
import os

import dacite
import yaml

import release_changelog.model as rcm

logger = logging.getLogger(__name__)


DEFAULT_CONFIGURATION = rcm.Configuration(
    template='#{{CHANGELOG}}',
    pr_template='- #{{TITLE}}\n   - PR: ##{{NUMBER}}',
    commit_template='- #{{TITLE}}',
    empty_template='- no changes',
    categories=(
        rcm.Category(title='## 🚀 Features', labels=frozenset(('feature',))),
        rcm.Category(title='## 🐛 Bug Fixes', labels=frozenset(('bug', 'fix'))),
        rcm.Category(title='## 📝 Documentation', labels=frozenset(('documentation', 'docs'))),
        rcm.Category(title='## 🔧 Maintenance', labels=frozenset(('maintenance', 'chore'))),
    ),
    ignore_labels=frozenset(),
    trim_values=True,
    default_category='## Other Changes',
)

def _reject_string(value):
    # dacite would otherwise cast a string into a collection of its characters
    if isinstance(value, str):
        raise ValueError(f'expected a list, but got a string: {value!r}')
    return value


# user-facing (JSON) attribute-names that differ from dataclass-field-names
_aliases = {
    'defaultCategory': 'default_category',
}


def merge_with_defaults(
    raw: dict,
    defaults: rcm.Configuration=DEFAULT_CONFIGURATION,
) -> rcm.Configuration:
    '''
    merges the given (user-supplied) configuration onto defaults. Each absent (or null) attribute
    is taken from defaults; present attributes replace the default value as a whole (e.g. passing
    `categories` replaces all default categories).

    raises `ValueError` if `raw` is not a mapping, or if a string is passed where a list is
    expected, and `dacite.DaciteError` if attributes are of unexpected types.
    '''
    if not isinstance(raw, dict):
        raise ValueError(f'configuration must be a JSON object, got {type(raw).__name__}')

    field_names = {field.name for field in dataclasses.fields(rcm.Configuration)}
    overrides = {}
    for name, value in raw.items():
        name = _aliases.get(name, name)
        if name not in field_names:
            logger.warning(f'ignoring unknown configuration attribute {name=}')
            continue
        if value is None:
            continue
        overrides[name] = value

    merged = dataclasses.asdict(defaults) | overrides

    return dacite.from_dict(
        data_class=rcm.Configuration,
        data=merged,
        config=dacite.Config(
            type_hooks={
                frozenset[str]: _reject_string,
                tuple[rcm.Category, ...]: _reject_string,
            },
            cast=[frozenset, tuple],
        ),
    )


def parse_configuration_json(config_json: str) -> rcm.Configuration | None:
    try:
        return merge_with_defaults(json.loads(config_json))
    except (ValueError, dacite.DaciteError) as e:
        logger.error(f'failed to parse configuration JSON: {e}')
        return None


def load_configuration_from_file(
    repository_path: str,
    config_path: str,
) -> rcm.Configuration | None:
    path = os.path.abspath(os.path.join(repository_path, config_path))

    if not os.path.isfile(path):
        logger.warning(f'configuration file not found: {path}')
        return None

    try:
        with open(path) as f:
            if path.endswith(('.yaml', '.yml')):
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)
        return merge_with_defaults(raw)
    except (ValueError, yaml.YAMLError, dacite.DaciteError) as e:
        logger.error(f'failed to load configuration from {path}: {e}')
        return None


def resolve_configuration(
    repository_path: str,
    config_json: str | None=None,
    config_file: str | None=None,
) -> rcm.Configuration:
    '''
    returns the effective configuration. Inline JSON has precedence over configuration-file; if
    neither is given (or both are invalid), defaults are returned.
    '''
    if config_json:
        if config := parse_configuration_json(config_json):
            logger.info('using configuration from configurationJson input')
            return config

    if config_file:
        if config := load_configuration_from_file(repository_path, config_file):
            logger.info(f'using configuration from {config_file}')
            return config

    logger.info('no configuration provided, using defaults')
    return DEFAULT_CONFIGURATION
