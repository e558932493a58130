#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(
    name="luaforge",
    version="0.1.0",
    description="Bidirectional Lua script <-> visual node graph transpiler",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={
        "luaforge": ["config.json5"],
        "luaforge.graph": ["catalog.yaml"],
    },
    python_requires=">=3.10",
    install_requires=[
        "json5",
        "PyYAML",
    ],
    extras_require={
        "dev": ["pytest", "black", "mypy"],
    },
    entry_points={
        "console_scripts": [
            "luaforge=luaforge.cli:main",
        ],
    },
)
