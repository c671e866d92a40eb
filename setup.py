from setuptools import setup, find_packages

setup(
    name="promptproxy",
    version="0.1.0",
    packages=find_packages(include=["promptproxy", "promptproxy.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.6",
        "pydantic-settings>=2.7",
        "httpx>=0.27",
        "openai>=1.55",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
