"""Setup configuration for safari-cli.

- Package as "safari-cli" for pip installation
- Support development mode (pip install -e .)
- Support production installation (pip install .)
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

# Read requirements.txt for dependencies
requirements_path = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_path.exists():
    requirements = [
        line.strip()
        for line in requirements_path.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]

# Read requirements-dev.txt for development dependencies
dev_requirements_path = Path(__file__).parent / "requirements-dev.txt"
dev_requirements = []
if dev_requirements_path.exists():
    dev_requirements = [
        line.strip()
        for line in dev_requirements_path.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="safari-cli",
    version="0.1.0",
    description="Control Safari from the command line via WebDriver",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="safari-cli Contributors",
    license="MIT",

    # Package discovery
    packages=find_packages(include=["safari_cli", "safari_cli.*"]),

    # Dependencies
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements,
    },

    # CLI entry point
    entry_points={
        "console_scripts": [
            "safari-cli=safari_cli.cli.main:main",
        ],
    },

    # Python version requirement
    python_requires=">=3.10",

    # PyPI classifiers
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Testing",
        "Topic :: Internet :: WWW/HTTP :: Browsers",
    ],

    # Keywords for PyPI search
    keywords="safari webdriver safaridriver browser automation cli",
)
