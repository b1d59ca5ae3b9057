from setuptools import setup

setup(
    name="sitecheck",
    packages=["sitecheck"],
    version="0.1.0",
    description="A tool that checks website availability concurrently and reports the results",
    license="BSD",
    python_requires=">=3.7",
    install_requires=[
        "tabulate >= 0.8.9",
    ],
    extras_require={
        "dev": [
            "pytest >= 6.2",
            "pytest-cov >= 2.11.1",
            "pytest-httpserver >= 1.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "sitecheck=sitecheck.checker:run_checker_app",
        ],
    },
)
