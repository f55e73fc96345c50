#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import setuptools


setuptools.setup(
    name="strixforge",
    version="0.0.1b1",
    description="Post-installation configurator for AMD Strix Halo "
    "machines.",
    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Systems Administration"
    ],
    url="https://github.com/daveweinstein1/strixforge",
    keywords="grub limine lxd refind rocm strix-halo systemd-boot",
    project_urls={
        "Source": "https://github.com/daveweinstein1/strixforge"
    },
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src"),
    install_requires=[
        "argh",
        "jsonschema",
        "pydbus",
        "PyGObject",
        "sh>=2"
    ],
    extras_require={
        "test": [
            "pytest"
        ]
    },
    entry_points={
        "console_scripts": [
            "strixforge=strixforge.__main__:main"
        ]
    },
    zip_safe=True,
    python_requires=">=3.8")
