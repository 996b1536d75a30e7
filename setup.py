#!/usr/bin/env python
from setuptools import setup, find_packages

setup(
    name="modification-service",
    version="0.1.0",
    description="Modification orchestration and safe-patch engine for generated React codebases",
    author="Platform Engineering",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10,<3.14",
    install_requires=[
        # API framework
        "fastapi>=0.111.0",
        "uvicorn>=0.30.0",
        "python-dotenv>=1.0.1",

        # Configuration and models
        "pydantic>=2.7.0",
        "pydantic-settings>=2.3.0",

        # Logging
        "structlog>=24.1.0",

        # Data infrastructure
        "redis>=5.1.0",
        "sqlalchemy[asyncio]>=2.0.30",
        "asyncpg>=0.29.0",

        # Reasoning service
        "langchain-core>=0.3.0",
        "langchain-openai>=0.2.0",

        # Source parsing
        "tree-sitter>=0.23.0",
        "tree-sitter-language-pack>=0.7.0,<1",
    ],
    extras_require={
        "dev": [
            "pytest>=8.1.0",
            "pytest-asyncio>=0.24.0",
            "pytest-cov>=4.2.0",
            "httpx>=0.27.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "modification-service-serve=modification_service.main:serve_api",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
