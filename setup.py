"""
Packaging for sentinelbox-connector-py.

Tests are run with pytest from the package root:

- unit tests: `pytest sentinelbox`
- integration tests against live sentinels: set SENTINELBOX_SENTINELS (comma separated host:port list)
  and SENTINELBOX_MASTER, then `pytest integrate`
"""

from setuptools import setup, find_packages


setup(
    name='sentinelbox-connector-py',
    version='0.0.1',
    description='Sentinel managed master discovery and failover for redis connections in Python.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    packages=find_packages(include=['sentinelbox', 'sentinelbox.*']),
    python_requires='>=3.8',
    install_requires=[
        'redis>=4.2',
        'configobj>=5.0.8',
    ],
    extras_require={
        'test': [
            'pytest',
            'PyHamcrest>=2.0',
        ],
    },
    zip_safe=False,
)
