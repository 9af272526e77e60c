"""Packaging for linemarks (src layout, console script ``linemarks``)."""

from setuptools import find_packages, setup

setup(
    name="linemarks",
    version="0.1.0",
    description="Line bookmarks in a plain-text file that follow your edits",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "click>=8.1",
    ],
    extras_require={
        "inotify": ["inotify_simple>=1.3"],
        "test": ["pytest>=8"],
    },
    entry_points={
        "console_scripts": [
            "linemarks = linemarks.cli:main",
        ],
    },
)
