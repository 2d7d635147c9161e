from setuptools import setup, find_packages

setup(
    name="tfs-providers",
    version="0.1.0",
    description="Team Foundation Server issue tracking and source control providers",
    author="TFS Providers Team",
    packages=find_packages(exclude=["*.tests", "*.tests.*", "tests"]),
    install_requires=[
        "pydantic>=2.0.0",
        "azure-devops>=7.1.0b4",
        "msrest>=0.7.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "black>=22.0.0",
            "isort>=5.0.0",
        ],
    },
    python_requires=">=3.8",
)
