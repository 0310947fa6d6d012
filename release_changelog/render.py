# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
renders changelog-entries into a (markdown) document.

templates may contain placeholders of the form `#{{NAME}}`. Placeholders are replaced literally
in a single pass (i.e. replaced values are never themselves subject to replacement). Unknown
placeholders are retained as they are.

per-entry placeholders (`pr_template`, `commit_template`):
    TITLE, NUMBER, AUTHOR, LABELS, MERGED_AT, URL, BODY

top-level placeholders (`template`):
    CHANGELOG, TAG_ANNOTATION
'''

import collections.abc
import logging
import re

import release_changelog.model as rcm

logger = logging.getLogger(__name__)

_placeholder_pattern = re.compile(r'#\{\{([A-Z_]+)\}\}')


def substitute(
    template: str,
    values: collections.abc.Mapping[str, str],
) -> str:
    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in values:
            return match.group(0)
        return values[name]

    return _placeholder_pattern.sub(replace, template)


def _entry_values(
    entry: rcm.PullRequestInfo,
    trim_values: bool,
) -> dict[str, str]:
    title = entry.title or ''
    author = entry.author or ''
    if trim_values:
        title = title.strip()
        author = author.strip()

    return {
        'TITLE': title,
        'NUMBER': str(entry.number),
        'AUTHOR': author,
        'LABELS': ', '.join(sorted(entry.labels)),
        'MERGED_AT': entry.merged_at.isoformat() if entry.merged_at else '',
        'URL': entry.url or '',
        'BODY': entry.body or '',
    }


def render_entry(
    entry: rcm.PullRequestInfo,
    config: rcm.Configuration,
) -> str:
    if entry.is_synthetic:
        template = config.commit_template
    else:
        template = config.pr_template

    return substitute(template, _entry_values(entry, config.trim_values))


def categorize(
    entries: collections.abc.Iterable[rcm.PullRequestInfo],
    config: rcm.Configuration,
) -> dict[str, list[rcm.PullRequestInfo]]:
    '''
    groups the given entries into categories (retaining order of entries).

    entries bearing any of `config.ignore_labels` are dropped. Each remaining entry is assigned to
    the first matching category, or to `config.default_category` if no category matches.
    The returned dict contains all configured categories (in configured order), followed by the
    default category; categories w/o entries are retained (as empty lists).
    '''
    categorised = {category.title: [] for category in config.categories}
    categorised.setdefault(config.default_category, [])

    for entry in entries:
        if not config.ignore_labels.isdisjoint(entry.labels):
            logger.debug(f'ignoring {entry.number=} {entry.title=} (has ignored label)')
            continue

        for category in config.categories:
            if category.matches(entry.labels):
                categorised[category.title].append(entry)
                break
        else:
            categorised[config.default_category].append(entry)

    return categorised


def _join_affixes(
    body: str,
    prefix: str | None,
    postfix: str | None,
) -> str:
    parts = [body]
    if prefix:
        parts.insert(0, prefix)
    if postfix:
        parts.append(postfix)
    return '\n'.join(parts)


def render_changelog(
    entries: collections.abc.Iterable[rcm.PullRequestInfo],
    config: rcm.Configuration,
    tag_annotation: str | None=None,
    prefix: str | None=None,
    postfix: str | None=None,
) -> str:
    categorised = categorize(entries, config)

    sections = []
    for title, category_entries in categorised.items():
        if not category_entries:
            continue
        lines = [title]
        lines.extend(render_entry(entry, config) for entry in category_entries)
        sections.append('\n'.join(lines))

    if sections:
        changelog = '\n\n'.join(sections)
    else:
        changelog = config.empty_template

    body = substitute(
        config.template,
        {
            'CHANGELOG': changelog,
            'TAG_ANNOTATION': tag_annotation or '',
        },
    )

    return _join_affixes(body, prefix=prefix, postfix=postfix)
