from setuptools import setup, find_packages

setup(
    name="genass",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        "genass.core": ["default_config.json"],
        "genass.schemas": ["*.json"],
    },
    install_requires=[
        "click>=8.0.0",
        "requests>=2.25.0",
        "pillow>=9.1.0",
        "pyyaml>=6.0",
        "jsonschema>=4.0.0",
        "python-dotenv>=0.19.0",
        "numpy>=1.20.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "genass=genass.cli:main",
        ],
    },
    python_requires=">=3.9",
    author="GenAss Team",
    description="Asset generation pipeline with quality validation and cost controls",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
