# setup.py
from setuptools import setup, find_packages

setup(
    name="scoopi",
    version="0.1.0",
    description="Scoop documentation websites into local Markdown files",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "markdownify>=1.1",
        "playwright>=1.40",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["scoopi=scoopi.cli:cli"],
    },
    python_requires=">=3.11",
)
