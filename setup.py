from setuptools import setup, find_packages

setup(
    name="liftlab",
    version="0.1.0",
    description="Discrete multi-elevator building simulation with pluggable dispatch",
    author="adamfilli",
    packages=find_packages(include=["liftlab", "liftlab.*"]),
    install_requires=[
        "matplotlib",
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "liftlab=liftlab.cli:main",
        ],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
