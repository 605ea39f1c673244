#!/usr/bin/env python3
"""
Setup script for the Phantom Driver package
"""

from setuptools import setup, find_packages

setup(
    name="phantom_driver",
    version="1.0.0",
    description="Record joystick inputs into route files and play them back as autonomous routines",
    author="Thorn",
    packages=find_packages(include=["phantom_driver", "phantom_driver.*"]),
    python_requires=">=3.7",
    install_requires=[
        "numpy>=1.19.0",
        "PyYAML>=5.1",
    ],
    extras_require={
        "test": [
            "pytest>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "phantom-console=phantom_driver.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
