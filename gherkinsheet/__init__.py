"""gherkinsheet - Gherkin feature files to spreadsheet test cases and back"""

__version__ = "1.0.0"
