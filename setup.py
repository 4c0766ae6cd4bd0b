# setup.py
"""Setup script for the Media Offload Tool."""

import os

from setuptools import setup, find_packages

setup(
    name="media-offload",
    version="1.0.0",
    description="Resumable photo and video transfer from phones and cameras with checkpoint support",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Media Tool Team",
    packages=find_packages(),
    python_requires=">=3.8",
    install_requires=[
        "Pillow>=9.4.0",
        "tqdm>=4.50.0",
        "pywin32>=300; sys_platform == 'win32'",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "pytest-cov>=2.10.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "media-offload=media_offload.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Multimedia :: Graphics",
        "Topic :: System :: Archiving",
    ],
)

# requirements.txt
# Core dependencies
# Pillow>=9.4.0
# tqdm>=4.50.0
# pywin32>=300; sys_platform == 'win32'
#
# Development dependencies (optional)
# pytest>=6.0.0
# pytest-cov>=2.10.0
