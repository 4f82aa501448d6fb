from setuptools import setup, find_packages

setup(
    name="app_deployer",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "boto3>=1.26.0",
        "PyYAML>=6.0",
        "pydantic>=2.0",
    ],
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "app-deployer=app_deployer.cli:main",
        ],
    },
    description="A tool to deploy simple web applications to AWS with CloudFormation",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-mock>=3.10.0",
            "moto[s3,cloudformation,lambda]>=5.0.0",
        ],
    },
)
