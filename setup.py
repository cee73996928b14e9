from setuptools import setup, find_packages

setup(
    name="ampel-mapper",
    version="0.1.0",
    description="Maps governance policies to attestation verification policies",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={"ampel_mapper.config": ["mapper_config.yaml"]},
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "structlog>=23.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ampel-mapper=ampel_mapper.cli:main",
        ],
    },
)
