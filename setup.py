"""Setup configuration for the cdp-cookies tool.

- Package as "cdp-cookies" for pip installation
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
    name="cdp-cookies",
    version="0.1.0",
    description="List tabs and dump, clear or load cookies of Chromium browsers via the DevTools Protocol",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="cdp-cookies contributors",
    license="MIT",

    # Package discovery
    packages=find_packages(include=["cdpcookies", "cdpcookies.*"]),

    # Dependencies
    install_requires=requirements or ["websockets>=13.0"],
    extras_require={
        "dev": dev_requirements or ["pytest>=7.4", "pytest-asyncio>=0.23"],
    },

    # CLI entry point
    entry_points={
        "console_scripts": [
            "cdp-cookies=cdpcookies.cli.main:main",
        ],
    },

    python_requires=">=3.10",

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Debuggers",
        "Topic :: Internet :: WWW/HTTP :: Browsers",
    ],

    keywords="chrome chromium devtools cdp cookies debugging",
)
