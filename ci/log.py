# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

from copy import copy
import logging
import os
import sys


class CCFormatter(logging.Formatter):
    level_colors = {
        logging.DEBUG: lambda level_name:
        f'{Bcolors.BOLD}{Bcolors.BLUE}{level_name}{Bcolors.RESET_ALL}',
        logging.INFO: lambda level_name:
        f'{Bcolors.BOLD}{Bcolors.GREEN}{level_name}{Bcolors.RESET_ALL}',
        logging.WARNING: lambda level_name:
        f'{Bcolors.BOLD}{Bcolors.YELLOW}{level_name}{Bcolors.RESET_ALL}',
        logging.ERROR: lambda level_name:
        f'{Bcolors.BOLD}{Bcolors.RED}{level_name}{Bcolors.RESET_ALL}',
    }

    def color_level_name(self, level_name, level_number):
        return self.level_colors.get(level_number, str)(level_name)

    def formatMessage(self, record):
        record_copy = copy(record)
        levelname = record_copy.levelname
        if sys.stderr.isatty():
            levelname = self.color_level_name(levelname, record_copy.levelno)
        record_copy.__dict__['levelprefix'] = levelname
        return super().formatMessage(record_copy)


class Bcolors:
    RESET_ALL = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'


def debug_enabled_from_env(env: dict=None) -> bool:
    '''
    returns whether debug-logging was requested by CI-runner (GitHub-Actions / Gitea-Actions set
    `RUNNER_DEBUG`; `ACTIONS_STEP_DEBUG` is set for step-debug-logging)
    '''
    if env is None:
        env = os.environ

    return any(
        env.get(name, '').strip().lower() in ('1', 'true')
        for name in ('ACTIONS_STEP_DEBUG', 'RUNNER_DEBUG')
    )


def configure_default_logging(
    stdout_level=None,
    force=True,
):
    '''
    configures root-logger to emit to stderr (stdout is reserved for changelog-output)
    '''
    if not stdout_level:
        stdout_level = logging.INFO

    # make sure to have a clean root logger (in case setup is called multiple times)
    if force:
        for h in list(logging.root.handlers):
            logging.root.removeHandler(h)
            h.close()

    sh = logging.StreamHandler(stream=sys.stderr)
    sh.setLevel(stdout_level)
    sh.setFormatter(CCFormatter(fmt=default_fmt_string()))

    logging.root.addHandler(hdlr=sh)
    logging.root.setLevel(level=stdout_level)

    # both too verbose ...
    logging.getLogger('github3').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def default_fmt_string():
    return '%(asctime)s [%(levelprefix)s] %(name)s: %(message)s'
