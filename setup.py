# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the AgentFlow workflow execution engine
"""

from setuptools import setup, find_packages

setup(
    name="agentflow-engine",
    version="1.0.0",
    description="Workflow execution engine: graph traversal, conditions and safe outbound actions",
    package_dir={"": "backend"},
    packages=find_packages("backend", exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "fastapi>=0.110.0",
        "pydantic>=2.0.0",
        "httpx>=0.27.0",
        "aiofiles>=23.0.0",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
        "uvicorn>=0.27.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
        ]
    },
)
