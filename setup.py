# setup.py
from setuptools import setup, find_packages

setup(
    name="schema_scout",
    version="0.1.0",
    description="Анализатор JSON-LD разметки Schema.org: обход сайта, проверка @id, оценка и рекомендации",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"schema_scout": ["templates/*.j2"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "lxml>=4.9",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "Jinja2>=3.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "schema-scout=schema_scout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
