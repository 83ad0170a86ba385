# pylint: disable=missing-module-docstring
import re
from pathlib import Path

from setuptools import find_packages, setup

this_directory = Path(__file__).parent

with open(this_directory / "requirements.in", encoding="utf-8") as f:
    requirements = f.read().splitlines()

with open(this_directory / "requirements-dev.in", encoding="utf-8") as f:
    dev_requirements = f.read().splitlines()

version = re.search(
    r'__version__ = "([^"]+)"', (this_directory / "loopqueue" / "_version.py").read_text()
).group(1)

long_description = (this_directory / "README.md").read_text()

setup(
    name="loopqueue",
    version=version,
    description="Bounded concurrency worker queues for single threaded event loops.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="loopqueue Team",
    license="LGPL-2.1 license",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["setuptools"] + requirements,
    extras_require={"dev": dev_requirements},
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "loopqueue = loopqueue.run_loopqueue:cli",
        ]
    },
)
