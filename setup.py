"""
Setup script for the Napclock sleep timer package
Enables editable installation: pip install -e .
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="napclock",
    version="1.0.0",
    description="Persistent single-slot sleep timer for media playback",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Napclock Team",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    install_requires=[
        "python-mpd2>=3.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-timeout>=2.1.0",
        ],
    },
)
