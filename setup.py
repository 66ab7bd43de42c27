from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="gherkinsheet",
    version="1.0.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Gherkin feature files to spreadsheet test cases, Scenario Outline expansion and pipe tables",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/gherkinsheet",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*", "docs"]),
    py_modules=["run"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Testing",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "openpyxl>=3.1.2",
        "pyyaml>=6.0.1",
        "click>=8.1.7",
        "colorama>=0.4.6",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.3",
        ],
        "dev": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "black>=23.10.0",
            "flake8>=6.1.0",
            "pre-commit>=3.5.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gherkinsheet=run:main",
        ],
    },
    include_package_data=True,
    package_data={
        "": ["*.yaml", "*.yml", "*.feature"],
    },
    project_urls={
        "Bug Reports": "https://github.com/yourusername/gherkinsheet/issues",
        "Source": "https://github.com/yourusername/gherkinsheet",
    },
    keywords="bdd gherkin cucumber feature excel xlsx test-cases scenario-outline",
    license="MIT",
)
