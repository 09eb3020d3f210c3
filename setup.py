"""
Notion Backup package setup.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="notion-backup",
    version="1.0.0",
    description="Scheduled Notion workspace export to markdown and html backups",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(
        include=["notion_backup", "notion_backup.*"],
        exclude=["notion_backup.tests", "notion_backup.tests.*"],
    ),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Archiving :: Backup",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "pytest-cov>=4.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "notion-backup=notion_backup.backup:main",
        ],
    },
)
