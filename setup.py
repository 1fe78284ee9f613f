from setuptools import setup, find_packages

setup(
    name="soundcloud-likes-log",
    version="0.1",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "pydantic>=2",
        "pyyaml",
        "python-dotenv",
        "loguru",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "soundcloud-likes-log=sll.cli:main",
        ],
    },
)
