"""Setup configuration for ScreenRec."""

from setuptools import setup, find_packages

setup(
    name="screenrec",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.9.0",
        "click>=8.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "screenrec=screenrec.cli:main",
        ],
    },
    python_requires=">=3.8",
)
