import os

from setuptools import setup, find_packages

with open(os.path.join(os.path.dirname(__file__), "readme.md"), "r") as fh:
    long_description = fh.read()

setup(
    name='cycle-kiosk-server',
    version='1.0.0',
    license='MIT',
    description='The API server behind the cycle rental kiosks.',
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires='>=3.11',
    install_requires=[
        'aiohttp>=3.8',
        'aiohttp-cors',
        'aiohttp-apispec',
        'marshmallow>=3.13,<4',
        'marshmallow-jsonschema',
        'tortoise-orm',
        'python-jose',
        'sentry-sdk',
        'uvloop',
        'aiomonitor',
        'tzdata',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-aiohttp',
            'pytest-asyncio',
            'faker',
        ],
    },
    entry_points={
        'console_scripts': ['kiosk=kiosk.cli:run'],
    },
)
