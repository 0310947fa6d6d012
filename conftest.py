# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

# placed at repository-root so that pytest adds it to python-path (top-level modules / packages)
