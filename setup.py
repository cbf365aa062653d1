"""
Setup script for WARP Endpoint Scan - latency-ranked WARP endpoint discovery
"""

from setuptools import setup, find_packages

# Read requirements from requirements.txt
def read_requirements():
    try:
        with open('requirements.txt', 'r') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    except FileNotFoundError:
        return ["requests>=2.25.0", "PyYAML>=5.4"]

setup(
    name="warp-endpoint-scan",
    version="0.1.0",
    description="WARP Endpoint Scan - find low-latency WARP endpoints",
    long_description="Concurrent TCP/UDP probing of WARP anycast ranges with latency ranking.",
    packages=find_packages(include=['warp_scan', 'warp_scan.*']),
    package_data={
        'warp_scan': ['ranges.yaml'],
    },
    include_package_data=True,
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=6.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'warp-scan=warp_scan.cli:main',
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.8",
)
