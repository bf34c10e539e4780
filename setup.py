"""Setup configuration for syncato-storage package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = (
    readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""
)

setup(
    name="syncato-storage",
    version="1.0.0",
    description="Multi-backend storage layer with scheme-routed providers for file sync and share services",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["syncato", "syncato.*"]),
    python_requires=">=3.8",
    install_requires=[
        "fsspec>=2023.1.0",  # Non-local providers (memory, sftp, s3, ...)
        "pydantic>=2.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
            "mypy>=0.990",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Filesystems",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    keywords="storage multiplexer file-sync fsspec storage-backends",
)
