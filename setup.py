# setup.py
from setuptools import setup, find_packages

setup(
    name="rmem",
    version="0.1.0",
    description="Simulator of R's names/values memory model: copy-on-modify, "
                "environments, string pool and a tracing collector",
    packages=find_packages(include=["rmem", "rmem.*"]),
    python_requires=">=3.9",
    install_requires=[],
    extras_require={"test": ["pytest", "hypothesis"]},
    zip_safe=False,
)
