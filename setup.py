from setuptools import setup, find_packages

setup(
    name="parthbot",
    version="0.1.0",
    packages=find_packages(include=["parthbot", "parthbot.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.26.0",
        "python-dotenv>=1.0.0",
        "pygame>=2.5.2",
    ],
    extras_require={
        "test": [
            "pytest",
            "python-chess",
        ],
    },
)
