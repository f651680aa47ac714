"""Setup configuration for the cavvy-analyzer package."""

import os
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read version from package
version_file = os.path.join(os.path.dirname(__file__), "cavvy_analyzer", "__init__.py")
with open(version_file) as f:
    for line in f:
        if line.startswith("__version__"):
            version = line.split("=")[1].strip().strip('"').strip("'")
            break
    else:
        version = "0.1.0"

setup(
    name="cavvy-analyzer",
    version=version,
    description="Symbol extraction and diagnostics for Cavvy (.cay) source files",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Quality Assurance",
        "Topic :: Text Editors :: Integrated Development Environments (IDE)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "pyyaml>=6.0",
        "click>=8.0",
        "rich>=13.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "coverage>=6.0",
            "ruff>=0.1",
            "mypy>=1.0",
            "pygls>=1.1,<2",
            "lsprotocol>=2023.0",
        ],
        "lsp": [
            "pygls>=1.1,<2",
            "lsprotocol>=2023.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cavvy-analyzer=cavvy_analyzer.cli:main",
        ],
    },
    include_package_data=True,
    keywords=[
        "cavvy",
        "static-analysis",
        "linting",
        "language-server",
        "diagnostics",
    ],
)
