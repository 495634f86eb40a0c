from setuptools import setup, find_packages

setup(
    name="signalbus",
    version="0.1.0",
    description="In-process publish/subscribe with wildcard event keys",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "pyee>=11.0.1",
        "pydantic>=2.5.2",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
        ],
    },
    python_requires=">=3.8",
)
