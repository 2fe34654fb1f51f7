from setuptools import setup, find_packages
setup(
    name="ziso",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["numpy", "lz4"],
    # tests are plain unittest; pytest is only the runner
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["ziso = ziso.cli:main"]},
    python_requires=">=3.9",
)
