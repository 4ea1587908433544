from os import path

from setuptools import setup, find_packages

import prebuildify.scripts.version as version

here = path.abspath(path.dirname(__file__))

with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='prebuildify',
    description='Build native node modules for several targets and collect them as prebuilds',
    long_description=long_description,
    version=version.version,
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={'prebuildify': ['data/*.yaml']},
    include_package_data=True,
    install_requires=[
        'click>=8.0',
        'rainbow_logging_handler',
        'pyyaml'
    ],
    extras_require={
        'test': ['pytest']
    },
    tests_require=['pytest'],
    license='GPLv3',
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Topic :: Software Development :: Build Tools",
        "Environment :: Console",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        'Intended Audience :: Developers',
    ],
    entry_points='''
        [console_scripts]
        prebuildify=prebuildify.scripts.run:run
    '''
)
