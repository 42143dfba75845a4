from setuptools import setup, find_packages

setup(
    name="webpilot",
    version="1.0.0",
    description="Configurable local and grid WebDriver sessions with async settle waits",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "selenium>=4.11.0",
        "webdriver-manager>=3.5.2",
        "requests>=2.28.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'webpilot=webpilot.__main__:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
)
