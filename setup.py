from setuptools import setup, find_packages

setup(
    name="tooldeck",
    version="0.1.0",
    packages=find_packages(include=["tooldeck", "tooldeck.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0",
        "httpx",
        "python-dotenv",
        "fastapi",
        "uvicorn",
        "click",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "tooldeck=tooldeck.cli.cli:main",
        ],
    },
)
