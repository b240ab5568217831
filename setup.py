"""
TaskTrack setup.py — Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="tasktrack",
    version="1.0.0",
    description="TaskTrack — per-user task tracker on Supabase",
    packages=find_packages(include=["tasktrack", "tasktrack.*"]),
    python_requires=">=3.11",
    install_requires=[
        "reflex>=0.6.5",
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "tests": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
