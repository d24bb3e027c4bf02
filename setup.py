#!/usr/bin/env python3
"""
Setup script for Rotrix
"""

from setuptools import setup, find_packages

# Read the README file
def read_readme():
    with open("README.md", "r", encoding="utf-8") as fh:
        return fh.read()

# Read requirements
def read_requirements():
    with open("requirements.txt", "r", encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="rotrix",
    version="0.1.0",
    author="Rotrix Team",
    description="Rotrix: falling blocks with a gravity that flips",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Games/Entertainment :: Puzzle Games",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "train": ["stable-baselines3>=2.0.0"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "rotrix=rotrix.main:main",
        ],
    },
    keywords=[
        "tetris",
        "puzzle",
        "gravity",
        "reinforcement-learning",
        "gymnasium",
    ],
)
