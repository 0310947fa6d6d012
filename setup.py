import setuptools
import os

own_dir = os.path.abspath(os.path.dirname(__file__))


def requirements():
    with open(os.path.join(own_dir, 'requirements.txt')) as f:
        for line in f.readlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            yield line


def modules():
    return [
        'http_requests',
        'version',
    ]


def packages():
    return [
        'ci',
        'providers',
        'release_changelog',
    ]


def version():
    with open(os.path.join(own_dir, 'VERSION')) as f:
        return f.read().strip()


setuptools.setup(
    name='release-changelog-builder',
    version=version(),
    description='Changelog (Release Notes) Builder for GitHub, Gitea and Git',
    python_requires='>=3.11',
    py_modules=modules(),
    packages=packages(),
    package_data={
        '':['VERSION'],
    },
    install_requires=list(requirements()),
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'release-changelog = release_changelog.cli:main',
        ],
    },
)
