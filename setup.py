# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Setup configuration for external-auth package."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="external-auth",
    version="0.1.0",
    author="Copilot-for-Consensus Contributors",
    description="External OAuth2/OIDC identity provider integration layer",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.109.0",  # For the authorize/callback HTTP surface
        "httpx>=0.27.0",  # For token exchange and profile requests
        "PyJWT>=2.8.0",  # For signing and verifying the OAuth state
        "pydantic>=2.4.0",  # For configuration and validation
        "starlette>=0.49.1",  # For request/response types under FastAPI
        "uvicorn>=0.27.0",  # For running the service
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-cov>=4.0.0",
            "hypothesis>=6.0.0",
            "pylint>=3.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "external-auth=external_auth.main:main",
        ],
    },
)
