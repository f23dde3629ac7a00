"""Setup script for the nightscout-bar package."""

from setuptools import find_packages, setup

setup(
    name="nightscout-bar",
    version="0.1.0",
    description="Nightscout glucose poller with a terminal status bar",
    author="Peter Wallman",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pyyaml",
        "python-dotenv",
        "aiohttp",
        "yarl",
        "rich",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-asyncio",
            "black",
            "isort",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "nightscout-bar=nightscout_bar.display:main",
            "nightscout-bar-poller=nightscout_bar.poller:main",
            "nightscout-bar-check=nightscout_bar.poller.check:main",
        ],
    },
)
