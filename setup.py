#!/usr/bin/env python3
"""
Setup configuration for flickr-crawler
Incrementally mirror Flickr users' photos and videos to a local folder
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "flickr_api>=0.7.7",
    "yt-dlp>=2023.12.30",
    "click>=8.1.7",
    "rich-click>=1.7.0",
    "pyyaml>=6.0.1",
    "requests>=2.31.0",
    "tqdm>=4.66.1",
]

setup(
    name="flickr-crawler",
    version="0.1.0",
    author="flickr-crawler",
    description="Incrementally download Flickr users' albums, photos and videos",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["flickr_crawler", "flickr_crawler.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics",
        "Topic :: Internet :: WWW/HTTP",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "flickr-crawl=flickr_crawler.cli:main",
        ],
    },
    keywords="flickr photos albums download backup crawler cli",
)
