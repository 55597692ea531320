# setup.py
from setuptools import setup, find_packages

setup(
    name="site_snap",
    version="0.1.0",
    description="SiteSnap: full-page screenshots of a website's key pages or whole internal link graph",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"site_snap.report": ["templates/*.j2"]},
    install_requires=[
        "playwright>=1.40",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "Jinja2>=3.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "aiohttp>=3.9",
        ],
    },
    entry_points={
        "console_scripts": ["site-snap=site_snap.cli:cli"],
    },
    python_requires=">=3.11",
)
