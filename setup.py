"""
Setup script for adaptive-study-scheduler.

The scheduler decides what a learner should study next:

1. Review scheduling - retention decay and urgency ranking
2. Mastery tracking - EMA mastery with prerequisite credit
3. Task selection - consolidations, due reviews and new topics, interleaved

The 'study-scheduler' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="adaptive-study-scheduler",
    version="0.1.0",
    description="Adaptive study scheduler with retention decay and prerequisite-aware mastery",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "study-scheduler=study_scheduler.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition scheduler mastery education",
)
