# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
creates changelogs (release notes) from pull requests and commits between two tags of a
repository hosted on GitHub, Gitea, or a plain (local) git-repository.

the pipeline consists of:

- tag-resolution (`release_changelog.tags`)
- collection of pull requests / commits (`release_changelog.collect`)
- categorisation and rendering (`release_changelog.render`)

`release_changelog.cli` wires those together with input-parsing and platform-detection.
'''
