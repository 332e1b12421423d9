from setuptools import setup, find_packages

setup(
    name="webauto",
    version="1.0.0",
    description="Synchronization and resilient interaction layer for browser automation",
    packages=find_packages(include=["webauto", "webauto.*"]),
    install_requires=[
        "selenium>=4.10.0",
        "pyyaml>=5.4",
        "jsonschema>=4.0.0",
        "pillow>=8.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    package_data={
        "webauto": ["schemas/*.json"],
    },
    entry_points={
        "console_scripts": [
            "webauto=webauto.cli:main",
        ],
    },
)
